"""Affine geometry toolkit for point sets of arbitrary dimension.

A point set is any sequence of equal-length coordinate vectors, or an
``(n, d)`` array whose rows are points.  The central operation is
``affinebasis_indices``, which greedily extracts an affinely
independent subset of the points; ``affinemap`` and ``rigidmap`` use
such a subset to build the unique affine transformation sending a
preimage basis onto its image.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from geocombsurf.errors import (
    DegenerateGeometryError,
    DimensionMismatchError,
    IncompatibleGeometryError,
    PreconditionError,
)
from geocombsurf.linalg import colspace, rank
from geocombsurf.tolerances import EPS_AFFINE, EPS_ANGLE, EPS_RIGID

AffineMap = Callable[[Sequence[float]], np.ndarray]


def as_points(points) -> np.ndarray:
    """Return ``points`` as an ``(n, d)`` float array.

    Raises ``DimensionMismatchError`` if the points do not all have the
    same number of coordinates.
    """

    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=float)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        if arr.ndim != 2:
            raise DimensionMismatchError('point arrays must be two-dimensional')
        return arr
    pts = [np.asarray(p, dtype=float).ravel() for p in points]
    if not pts:
        return np.zeros((0, 0))
    d = len(pts[0])
    if any(len(p) != d for p in pts):
        raise DimensionMismatchError('all points need the same number of coordinates')
    return np.vstack(pts)


def dist(v, w) -> float:
    """Euclidean distance between ``v`` and ``w``."""

    return math.sqrt(sqdist(v, w))


def sqdist(v, w) -> float:
    """Squared Euclidean distance between ``v`` and ``w``."""

    a = np.asarray(v, dtype=float)
    b = np.asarray(w, dtype=float)
    if a.shape != b.shape:
        raise DimensionMismatchError('points need the same number of coordinates')
    diff = a - b
    return float(np.dot(diff, diff))


def signedangle(v, w, normal, atol: float = EPS_ANGLE) -> float:
    """Signed angle in ``(-pi, pi]`` rotating ``v`` onto ``w`` about ``normal``.

    ``v`` and ``w`` must be three-dimensional and perpendicular to
    ``normal`` within ``atol``.  A positive result is a counter-clockwise
    rotation when looking down ``normal``.
    """

    a = np.asarray(v, dtype=float)
    b = np.asarray(w, dtype=float)
    n = np.asarray(normal, dtype=float)
    if a.shape != (3,) or b.shape != (3,) or n.shape != (3,):
        raise DimensionMismatchError('signedangle is only defined for 3-vectors')
    length = np.linalg.norm(n)
    if length == 0.0:
        raise DegenerateGeometryError('normal vector must not be zero')
    n = n / length
    if abs(np.dot(a, n)) > atol or abs(np.dot(b, n)) > atol:
        raise PreconditionError('vectors need to be perpendicular to the normal')
    return math.atan2(float(np.dot(np.cross(a, b), n)), float(np.dot(a, b)))


def _homogeneous(pts: np.ndarray) -> np.ndarray:
    # points as columns, with a trailing row of ones
    return np.vstack([pts.T, np.ones((1, pts.shape[0]))])


def affinebasis_indices(points, atol: float = EPS_AFFINE) -> List[int]:
    """Return 0-based positions of an affine basis of ``points``.

    Points are scanned in order and a point is kept iff its homogeneous
    coordinate column raises the dimension of the column space spanned
    by the points kept so far.  The scan stops once ``d + 1`` points
    have been found.  The length of the result is always
    ``affinedim(points) + 1``.
    """

    pts = as_points(points)
    if pts.shape[0] == 0:
        return []
    d = pts.shape[1]
    H = _homogeneous(pts)
    keep: List[int] = []
    for j in range(H.shape[1]):
        if colspace(H[:, keep + [j]], atol=atol).shape[1] > len(keep):
            keep.append(j)
        if len(keep) == d + 1:
            break
    return keep


def affinebasis(points, atol: float = EPS_AFFINE) -> np.ndarray:
    """Return the points of ``points`` selected by ``affinebasis_indices``."""

    pts = as_points(points)
    return pts[affinebasis_indices(pts, atol=atol)]


def affinedim(points, atol: float = EPS_AFFINE) -> int:
    """Dimension of the affine span of ``points``."""

    return len(affinebasis_indices(points, atol=atol)) - 1


def affinemap(preim, im, atol: float = EPS_AFFINE) -> AffineMap:
    """Return the affine map sending each point of ``preim`` to ``im``.

    ``preim`` must affinely span its whole coordinate space.  The map is
    determined by an affine basis of ``preim`` and the corresponding
    points of ``im``.  The returned callable accepts a single point or
    an ``(n, d)`` array of points.
    """

    if len(preim) != len(im):
        raise DimensionMismatchError(
            f'preimage has {len(preim)} points but image has {len(im)}')
    P = as_points(preim)
    Q = as_points(im)
    if P.shape[0] == 0:
        raise PreconditionError('affinemap needs at least one point')
    d = P.shape[1]
    e = Q.shape[1]

    basis = affinebasis_indices(P, atol=atol)
    if len(basis) != d + 1:
        raise DegenerateGeometryError(
            f'preimage spans an affine space of dimension {len(basis) - 1}, '
            f'but {d} is required')

    Hp = _homogeneous(P[basis])
    Hq = _homogeneous(Q[basis])
    if rank(Hp, atol=atol) < d + 1:
        raise DegenerateGeometryError('preimage basis is not invertible')
    M = Hq @ np.linalg.inv(Hp)

    def tau(x) -> np.ndarray:
        X = np.asarray(x, dtype=float)
        if X.ndim == 1:
            if X.shape[0] != d:
                raise DimensionMismatchError(
                    f'affine map expects {d}-dimensional points')
            return (M @ np.append(X, 1.0))[:e]
        if X.ndim != 2 or X.shape[1] != d:
            raise DimensionMismatchError(
                f'affine map expects {d}-dimensional points')
        return (M @ _homogeneous(X)).T[:, :e]

    return tau


def _distance_mismatch(P: np.ndarray, Q: np.ndarray,
                       atol: float) -> Optional[Tuple[int, int, float, float]]:
    for i in range(P.shape[0]):
        for j in range(i + 1, P.shape[0]):
            dp = float(np.linalg.norm(P[i] - P[j]))
            dq = float(np.linalg.norm(Q[i] - Q[j]))
            if abs(dp - dq) > atol:
                return i, j, dp, dq
    return None


def ispairwisecongruent(preim, im, atol: float = EPS_RIGID) -> bool:
    """True iff both point lists have equal length and equal pairwise distances."""

    if len(preim) != len(im):
        return False
    P = as_points(preim)
    Q = as_points(im)
    return _distance_mismatch(P, Q, atol) is None


def rigidmap(preim, im, atol: float = EPS_RIGID) -> AffineMap:
    """Return the rigid map sending ``preim`` onto ``im``.

    Every pairwise distance between preimage points has to match the
    corresponding image distance within ``atol``, otherwise an
    ``IncompatibleGeometryError`` naming the first offending pair (as
    0-based positions) is raised.
    """

    if len(preim) != len(im):
        raise DimensionMismatchError(
            f'preimage has {len(preim)} points but image has {len(im)}')
    P = as_points(preim)
    Q = as_points(im)
    mismatch = _distance_mismatch(P, Q, atol)
    if mismatch is not None:
        i, j, dp, dq = mismatch
        raise IncompatibleGeometryError(
            f'distance between points {i} and {j} is {dp} in the preimage '
            f'but {dq} in the image',
            pair=(i, j), expected=dp, actual=dq)
    return affinemap(P, Q, atol=atol)


__all__ = [
    'AffineMap',
    'as_points',
    'dist',
    'sqdist',
    'signedangle',
    'affinebasis_indices',
    'affinebasis',
    'affinedim',
    'affinemap',
    'ispairwisecongruent',
    'rigidmap',
]
