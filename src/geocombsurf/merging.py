"""Gluing two polyhedra along matching facets.

``merge_inplace(poly1, poly2, facets1, facets2)`` moves ``poly2`` with
a rigid map so that the vertices of ``facets2`` land on the
corresponding vertices of ``facets1`` (corresponding by position in the
concatenated facet lists), then splices both vertex, edge and facet
lists together.  The glued facets are dropped from both sides, so the
result is again a 2-dimensional piecewise linear manifold.  ``merge``
does the same on a copy of ``poly1``.
"""

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Sequence

import numpy as np

from geocombsurf.affine import affinebasis_indices, rigidmap
from geocombsurf.errors import (
    DegenerateGeometryError,
    DimensionMismatchError,
    IncompatibleGeometryError,
    PreconditionError,
)
from geocombsurf.polyhedron import Polyhedron, dimension
from geocombsurf.tolerances import EPS_MERGE

logger = logging.getLogger(__name__)


def _aligned_pairs(facets1: Sequence[Sequence[int]],
                   facets2: Sequence[Sequence[int]]) -> List[List[int]]:
    flat1 = [v for f in facets1 for v in f]
    flat2 = [v for f in facets2 for v in f]
    if len(flat1) != len(flat2):
        raise DimensionMismatchError(
            f'facets1 has {len(flat1)} vertex entries but facets2 has {len(flat2)}')
    pairs = sorted({(a, b) for a, b in zip(flat1, flat2)})
    col1 = [a for a, _ in pairs]
    col2 = [b for _, b in pairs]
    if len(set(col1)) != len(col1) or len(set(col2)) != len(col2):
        raise PreconditionError("Merging isn't well defined")
    return [[a, b] for a, b in pairs]


def merge_inplace(poly1: Polyhedron, poly2: Polyhedron,
                  facets1: Sequence[Sequence[int]],
                  facets2: Sequence[Sequence[int]],
                  atol: float = EPS_MERGE) -> None:
    """Glue ``poly2`` onto ``poly1`` along ``facets2`` and ``facets1``.

    ``poly1`` is replaced by the merged polyhedron; ``poly2`` is left
    untouched.  Vertices of ``poly2`` that are not glued are appended
    after the vertices of ``poly1`` in their original order.
    """

    keys1 = {frozenset(f) for f in poly1.get_facets()}
    keys2 = {frozenset(f) for f in poly2.get_facets()}
    if not all(frozenset(f) in keys1 for f in facets1):
        raise PreconditionError('facets1 needs to consist of facets of poly1.')
    if not all(frozenset(f) in keys2 for f in facets2):
        raise PreconditionError('facets2 needs to consist of facets of poly2.')
    if dimension(poly1) != dimension(poly2):
        raise DimensionMismatchError('poly1 and poly2 need to be embedded into the same space.')

    pairs = _aligned_pairs(facets1, facets2)
    if len(pairs) < 3:
        raise DegenerateGeometryError('Polyhedra cannot be merged along degenerate faces.')

    verts1 = poly1.get_verts()
    verts2 = poly2.get_verts()
    labels1 = [a for a, _ in pairs]
    labels2 = [b for _, b in pairs]
    align1 = verts1[np.asarray(labels1) - 1]
    align2 = verts2[np.asarray(labels2) - 1]

    for i in range(len(pairs)):
        for j in range(i + 1, len(pairs)):
            d1 = float(np.linalg.norm(align1[i] - align1[j]))
            d2 = float(np.linalg.norm(align2[i] - align2[j]))
            if abs(d1 - d2) > atol:
                raise IncompatibleGeometryError(
                    f'Polyhedra cannot be merged. Distance between vertex {labels1[i]} '
                    f'and {labels1[j]} of poly1 is {d1}, but the distance between vertex '
                    f'{labels2[i]} and {labels2[j]} of poly2 is {d2}',
                    pair=(labels1[i], labels1[j]), expected=d1, actual=d2)

    basis = affinebasis_indices(align2)
    preim = [align2[k] for k in basis]
    im = [align1[k] for k in basis]
    if len(preim) < 3:
        raise DegenerateGeometryError('Polyhedra cannot be merged along degenerate faces.')

    if len(preim) == 3 and dimension(poly1) == 3:
        # flat boundary: pin the map by sending the normal on poly2's side
        # to the opposite normal on poly1's side
        preim.append(preim[0] + np.cross(preim[1] - preim[0], preim[2] - preim[0]))
        im.append(im[0] - np.cross(im[1] - im[0], im[2] - im[0]))

    tau = rigidmap(preim, im, atol=atol)
    logger.debug('merging along %d aligned vertices', len(pairs))

    glued: Dict[int, int] = {b: a for a, b in pairs}
    nverts1 = verts1.shape[0]
    skipped = sorted(glued)

    def index_map2(i: int) -> int:
        if i in glued:
            return glued[i]
        return i + nverts1 - sum(1 for j in skipped if i > j)

    moved2 = tau(verts2)
    kept2 = [k for k in range(verts2.shape[0]) if (k + 1) not in glued]
    sol_verts = np.vstack([verts1, moved2[kept2]]) if kept2 else verts1

    sol_edges = poly1.get_edges()
    seen = {frozenset(e) for e in sol_edges}
    for e in poly2.get_edges():
        mapped = [index_map2(v) for v in e]
        key = frozenset(mapped)
        if key not in seen:
            seen.add(key)
            sol_edges.append(mapped)

    glued1 = {frozenset(f) for f in facets1}
    glued2 = {frozenset(f) for f in facets2}
    sol_facets = [f for f in poly1.get_facets() if frozenset(f) not in glued1]
    sol_facets += [[index_map2(v) for v in f] for f in poly2.get_facets()
                   if frozenset(f) not in glued2]

    poly1._assign(sol_verts, sol_edges, sol_facets)


def merge(poly1: Polyhedron, poly2: Polyhedron,
          facets1: Sequence[Sequence[int]],
          facets2: Sequence[Sequence[int]],
          atol: float = EPS_MERGE) -> Polyhedron:
    """Return the result of gluing ``poly2`` onto a copy of ``poly1``."""

    poly1_copy = copy.deepcopy(poly1)
    merge_inplace(poly1_copy, poly2, facets1, facets2, atol=atol)
    return poly1_copy


__all__ = ['merge', 'merge_inplace']
