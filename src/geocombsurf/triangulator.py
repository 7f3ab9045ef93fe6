"""Triangulation helpers for planar facets.

We delegate to ``mapbox-earcut`` (the fast ear clipping implementation
used by Mapbox GL) to keep the logic compact and reliable.  The helper
routine in this file normalises a 2-D loop into the format expected by
earcut and returns the triangles as index triples into the loop, wound
the same way as the loop itself.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate facets"
    ) from exc

Point2D = Tuple[float, float]
IndexTriangle = Tuple[int, int, int]


def triangulate_polygon(loop: Sequence[Sequence[float]]) -> List[IndexTriangle]:
    """Return triangles covering the simple polygon ``loop``.

    ``loop`` is a sequence of XY-like points without a repeated closing
    point.  Loops with fewer than three points yield no triangles.  Each
    returned triple indexes into ``loop`` and has the same winding as
    the loop.
    """

    points: List[Point2D] = [(float(pt[0]), float(pt[1])) for pt in loop]
    if len(points) < 3:
        return []

    vertices = np.asarray(points, dtype=np.float64)
    ring_array = np.asarray([len(points)], dtype=np.uint32)
    indices = _earcut.triangulate_float64(vertices, ring_array)

    want_ccw = signed_area(points) >= 0
    triangles: List[IndexTriangle] = []
    for i in range(0, len(indices), 3):
        a, b, c = int(indices[i]), int(indices[i + 1]), int(indices[i + 2])
        tri_ccw = signed_area([points[a], points[b], points[c]]) >= 0
        if tri_ccw != want_ccw:
            b, c = c, b
        triangles.append((a, b, c))
    return triangles


def signed_area(loop: Sequence[Sequence[float]]) -> float:
    """Shoelace area of a 2-D loop, positive when counter-clockwise."""

    total = 0.0
    n = len(loop)
    for i in range(n):
        x0, y0 = loop[i][0], loop[i][1]
        x1, y1 = loop[(i + 1) % n][0], loop[(i + 1) % n][1]
        total += x0 * y1 - x1 * y0
    return total / 2.0


__all__ = ['triangulate_polygon', 'signed_area']
