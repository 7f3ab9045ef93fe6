"""Builders for a few standard polyhedra."""

from __future__ import annotations

from math import cos, pi, sin

from geocombsurf.affine import dist
from geocombsurf.polyhedron import Polyhedron


def tetrahedron(size=1.0):
    """Corner tetrahedron with legs of length ``size`` along the axes.

    Facets are oriented with inward normals; use ``orient_facets`` to
    flip them.
    """

    s = float(size)
    verts = [[0, 0, 0], [s, 0, 0], [0, s, 0], [0, 0, s]]
    edges = [[1, 2], [2, 3], [3, 1], [4, 2], [4, 3], [4, 1]]
    facets = [[1, 2, 3], [4, 3, 2], [4, 2, 1], [3, 4, 1]]
    return Polyhedron(verts, edges, facets)


def pyramid(apex):
    """Pyramid over the unit square in the XY plane with apex ``apex``.

    The facets are deliberately left unoriented.
    """

    verts = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], list(apex)]
    edges = [[1, 2], [2, 3], [3, 4], [4, 1], [1, 5], [2, 5], [3, 5], [4, 5]]
    facets = [[1, 2, 3, 4], [1, 2, 5], [2, 3, 5], [3, 4, 5], [1, 4, 5]]
    return Polyhedron(verts, edges, facets)


def nprism(n):
    """Upright prism of height 1 over a regular ``n``-gon with unit sides.

    Vertices ``1..n`` form the bottom facet at ``z = 0`` and ``n+1..2n``
    the top facet at ``z = 1``.
    """

    if n < 3:
        raise ValueError('a prism needs a base with at least three sides')
    alpha = 1.0 / dist([1.0, 0.0], [cos(2 * pi / n), sin(2 * pi / n)])
    ring = [[alpha * cos(2 * pi * k / n), alpha * sin(2 * pi * k / n)] for k in range(n)]
    verts = [[x, y, 0.0] for x, y in ring] + [[x, y, 1.0] for x, y in ring]
    facets = [list(range(1, n + 1)), list(range(n + 1, 2 * n + 1))]
    facets += [[k, k + 1, k + n + 1, k + n] for k in range(1, n)]
    facets += [[n, 1, n + 1, 2 * n]]
    edges = [[k, k + 1] for k in range(1, n)] + [[n, 1]]
    edges += [[n + k, n + k + 1] for k in range(1, n)] + [[2 * n, n + 1]]
    edges += [[k, k + n] for k in range(1, n + 1)]
    return Polyhedron(verts, edges, facets)


def square(side=1.0, offset=(0.0, 0.0)):
    """Single square facet of side ``side`` in the plane, shifted by ``offset``."""

    ox, oy = offset
    verts = [[ox, oy], [ox + side, oy], [ox + side, oy + side], [ox, oy + side]]
    return Polyhedron(verts, [[1, 2], [2, 3], [3, 4], [4, 1]], [[1, 2, 3, 4]])


__all__ = ['tetrahedron', 'pyramid', 'nprism', 'square']
