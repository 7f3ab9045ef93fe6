"""Planar geometry primitives used by the polyhedron algorithms.

Polygons are sequences of points in cyclic order.  A trailing point
equal to the first one (a closed polyline) is accepted and ignored.
Point classification functions return ``1`` for points inside a
polygon, ``-1`` for points on its boundary and ``0`` for points
outside of it, including points that do not lie in the polygon's plane.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from geocombsurf.affine import affinebasis_indices, as_points
from geocombsurf.errors import DegenerateGeometryError, DimensionMismatchError
from geocombsurf.tolerances import EPS_PLANAR
from geocombsurf.triangulator import IndexTriangle, triangulate_polygon


class Plane:
    """Plane through at least three coplanar, non-collinear 3-D points.

    The plane is stored in Hessian normal form: a point on the plane
    and a unit normal.
    """

    def __init__(self, points, atol: float = EPS_PLANAR):
        pts = _open_loop(as_points(points))
        if pts.shape[1] != 3:
            raise DimensionMismatchError('planes are only defined in 3-space')
        basis = affinebasis_indices(pts, atol=atol)
        if len(basis) < 3:
            raise DegenerateGeometryError('points are collinear and do not define a plane')
        if len(basis) > 3:
            raise DegenerateGeometryError('points are not coplanar')
        p0, p1, p2 = pts[basis]
        n = np.cross(p1 - p0, p2 - p0)
        self.point = p0
        self.normal = n / np.linalg.norm(n)

    def signed_distance(self, p) -> float:
        return float(np.dot(np.asarray(p, dtype=float) - self.point, self.normal))

    def __repr__(self) -> str:
        return f'Plane(point={self.point.tolist()}, normal={self.normal.tolist()})'


class Ray:
    """Half-line starting at ``origin`` in the unit direction ``direction``."""

    def __init__(self, origin, direction):
        o = np.asarray(origin, dtype=float)
        d = np.asarray(direction, dtype=float)
        if o.shape != d.shape:
            raise DimensionMismatchError('ray origin and direction need the same dimension')
        length = np.linalg.norm(d)
        if length == 0.0:
            raise DegenerateGeometryError('ray direction must not be zero')
        self.origin = o
        self.direction = d / length

    def __repr__(self) -> str:
        return f'Ray(origin={self.origin.tolist()}, direction={self.direction.tolist()})'


def normalvec(plane: Plane) -> np.ndarray:
    """Unit normal of ``plane``."""

    return plane.normal.copy()


def intersect(ray: Ray, plane: Plane, atol: float = 1e-12) -> Optional[np.ndarray]:
    """Return the point where ``ray`` meets ``plane``.

    ``None`` is returned if the ray is parallel to the plane or if the
    plane lies behind the ray's origin.
    """

    denom = float(np.dot(plane.normal, ray.direction))
    if abs(denom) < atol:
        return None
    t = float(np.dot(plane.normal, plane.point - ray.origin)) / denom
    if t < -atol:
        return None
    return ray.origin + max(t, 0.0) * ray.direction


def center_of_mass(points) -> np.ndarray:
    """Average of ``points``."""

    pts = as_points(points)
    if pts.shape[0] == 0:
        raise DegenerateGeometryError('center of mass of an empty point set')
    return pts.mean(axis=0)


def _open_loop(pts: np.ndarray) -> np.ndarray:
    # drop a closing point that repeats the first one
    if pts.shape[0] > 1 and np.allclose(pts[0], pts[-1], rtol=0.0, atol=1e-12):
        return pts[:-1]
    return pts


def _newell(pts: np.ndarray) -> np.ndarray:
    # twice the vector area of a closed 3-D loop
    return np.cross(pts, np.roll(pts, -1, axis=0)).sum(axis=0)


def _frame(pts: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Origin, in-plane axes ``u``, ``v`` and unit normal of a 3-D loop.

    ``(u, v, n)`` is right handed, so a loop that winds counter-clockwise
    about its Newell normal is counter-clockwise in ``(u, v)``.
    """

    n = _newell(pts)
    length = np.linalg.norm(n)
    if length < EPS_PLANAR:
        raise DegenerateGeometryError('polygon has no well-defined normal')
    n = n / length
    origin = pts[0]
    u = None
    for q in pts[1:]:
        edge = q - origin
        edge = edge - np.dot(edge, n) * n
        if np.linalg.norm(edge) > EPS_PLANAR:
            u = edge / np.linalg.norm(edge)
            break
    if u is None:
        raise DegenerateGeometryError('polygon has no well-defined plane')
    v = np.cross(n, u)
    return origin, u, v, n


def _project(pts: np.ndarray, origin: np.ndarray, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    rel = pts - origin
    return np.column_stack([rel @ u, rel @ v])


def _segment_distance(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    ab = b - a
    denom = float(np.dot(ab, ab))
    if denom == 0.0:
        return float(np.linalg.norm(p - a))
    t = min(1.0, max(0.0, float(np.dot(p - a, ab)) / denom))
    return float(np.linalg.norm(p - (a + t * ab)))


def _on_boundary(pts: np.ndarray, p: np.ndarray, atol: float) -> bool:
    n = pts.shape[0]
    return any(_segment_distance(p, pts[i], pts[(i + 1) % n]) <= atol
               for i in range(n))


def _crossings(loop: np.ndarray, q: np.ndarray) -> int:
    # even-odd rule, horizontal ray towards +x
    count = 0
    n = loop.shape[0]
    x, y = q
    for i in range(n):
        x0, y0 = loop[i]
        x1, y1 = loop[(i + 1) % n]
        if (y0 > y) != (y1 > y):
            xc = x0 + (y - y0) * (x1 - x0) / (y1 - y0)
            if xc > x:
                count += 1
    return count


def _prepare(polygon, p) -> Tuple[np.ndarray, np.ndarray]:
    pts = _open_loop(as_points(polygon))
    q = np.asarray(p, dtype=float)
    if pts.shape[0] < 3:
        raise DegenerateGeometryError('a polygon needs at least three points')
    if q.shape != (pts.shape[1],):
        raise DimensionMismatchError('point and polygon need the same dimension')
    return pts, q


def intriang3d(triangle, p, atol: float = EPS_PLANAR) -> int:
    """Classify ``p`` against a 3-D triangle.

    Returns ``1`` inside, ``-1`` on an edge or corner, ``0`` outside.
    """

    pts, q = _prepare(triangle, p)
    if pts.shape != (3, 3):
        raise DimensionMismatchError('intriang3d expects three 3-D points')
    a, b, c = pts
    n = np.cross(b - a, c - a)
    area2 = np.linalg.norm(n)
    if area2 < EPS_PLANAR:
        raise DegenerateGeometryError('degenerate triangle')
    if abs(np.dot(q - a, n / area2)) > atol:
        return 0
    if _on_boundary(pts, q, atol):
        return -1

    v0 = c - a
    v1 = b - a
    v2 = q - a
    dot00 = np.dot(v0, v0)
    dot01 = np.dot(v0, v1)
    dot02 = np.dot(v0, v2)
    dot11 = np.dot(v1, v1)
    dot12 = np.dot(v1, v2)
    inv = 1.0 / (dot00 * dot11 - dot01 * dot01)
    s = (dot11 * dot02 - dot01 * dot12) * inv
    t = (dot00 * dot12 - dot01 * dot02) * inv
    if s > 0.0 and t > 0.0 and s + t < 1.0:
        return 1
    return 0


def inpolygon3d(polygon, p, atol: float = EPS_PLANAR) -> int:
    """Classify ``p`` against a simple planar polygon in 2-space or 3-space.

    Returns ``1`` inside, ``-1`` on the boundary, ``0`` outside.
    """

    pts, q = _prepare(polygon, p)
    if pts.shape[1] == 3:
        origin, u, v, n = _frame(pts)
        if abs(np.dot(q - origin, n)) > atol:
            return 0
        if _on_boundary(pts, q, atol):
            return -1
        loop = _project(pts, origin, u, v)
        q2 = _project(q.reshape(1, 3), origin, u, v)[0]
    elif pts.shape[1] == 2:
        if _on_boundary(pts, q, atol):
            return -1
        loop, q2 = pts, q
    else:
        raise DimensionMismatchError('polygons live in 2-space or 3-space')
    return 1 if _crossings(loop, q2) % 2 == 1 else 0


def is_ccw(polygon, normal) -> bool:
    """True if ``polygon`` winds counter-clockwise seen from the tip of ``normal``."""

    pts = _open_loop(as_points(polygon))
    if pts.shape[1] != 3:
        raise DimensionMismatchError('is_ccw expects a 3-D polygon')
    return float(np.dot(_newell(pts), np.asarray(normal, dtype=float))) > 0.0


def earcut3d(polygon) -> List[IndexTriangle]:
    """Ear-clipping triangulation of a simple planar polygon.

    Returns 0-based index triples into ``polygon``; each triangle winds
    the same way as the polygon.
    """

    pts = _open_loop(as_points(polygon))
    if pts.shape[0] < 3:
        return []
    if pts.shape[1] == 3:
        origin, u, v, _ = _frame(pts)
        loop = _project(pts, origin, u, v)
    elif pts.shape[1] == 2:
        loop = pts
    else:
        raise DimensionMismatchError('polygons live in 2-space or 3-space')
    return triangulate_polygon(loop)


__all__ = [
    'Plane',
    'Ray',
    'normalvec',
    'intersect',
    'center_of_mass',
    'intriang3d',
    'inpolygon3d',
    'is_ccw',
    'earcut3d',
]
