"""Utilities for working with triangulated views of polyhedra."""

from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from geocombsurf.planar import earcut3d
from geocombsurf.polyhedron import Polyhedron, dimension

Vec3 = Tuple[float, float, float]
TriTuple = Tuple[Vec3, Vec3, Vec3, Vec3]


def _vec3(p) -> Vec3:
    return float(p[0]), float(p[1]), float(p[2])


def mesh_view(poly: Polyhedron) -> Iterator[TriTuple]:
    """Yield triangles for every facet of ``poly`` as ``(normal, v0, v1, v2)``.

    Facets are ear-clipped, so non-convex facets are handled.  Triangles
    keep the winding of their facet and normals are unit vectors
    following the right-hand rule.  Only 3-D polyhedra have a mesh view.
    """

    if not isinstance(poly, Polyhedron):
        raise ValueError('mesh_view expects a Polyhedron')
    if dimension(poly) != 3:
        raise ValueError('mesh_view expects a polyhedron in 3-space')

    verts = poly.get_verts()
    for facet in poly.get_facets():
        pts = verts[np.asarray(facet) - 1]
        for a, b, c in earcut3d(pts):
            v0, v1, v2 = pts[a], pts[b], pts[c]
            n = np.cross(v1 - v0, v2 - v0)
            length = np.linalg.norm(n)
            if length == 0.0:
                continue
            yield _vec3(n / length), _vec3(v0), _vec3(v1), _vec3(v2)


def surfacearea(poly: Polyhedron) -> float:
    """Total area of the facets of a 3-D polyhedron."""

    total = 0.0
    for _, v0, v1, v2 in mesh_view(poly):
        total += 0.5 * float(np.linalg.norm(np.cross(np.subtract(v1, v0), np.subtract(v2, v0))))
    return total


__all__ = ['mesh_view', 'surfacearea']
