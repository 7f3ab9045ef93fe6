"""Combinatorial polyhedra with planar facets.

====================
OVERVIEW
====================

A ``Polyhedron`` is given by three pieces of data:

``verts``
    an ``(n, d)`` array of vertex coordinates, ``d`` being 2 or 3.  The
    vertex in row ``i`` carries the label ``i + 1``; edges and facets
    refer to vertices by these 1-based labels.

``edges``
    a list of ``[a, b]`` label pairs.  Edges are unordered and no pair
    may appear twice.

``facets``
    a list of cyclic label sequences.  Consecutive labels (and the last
    and first label) bound the facet.  Every facet must span an affine
    plane, and no facet may be contained in another one.

The data is only ever replaced as a whole through ``set_verts``,
``set_edges`` and ``set_facets``, which validate before they write.
The getters hand out copies.

Orientation
-----------

Two facets sharing an edge are consistently oriented when they traverse
that edge in opposite directions.  ``orient_facets`` propagates a
consistent orientation breadth-first over the facet adjacency graph,
then flips every facet if the resulting signed volume is negative so
that facet normals point outward.

Containment
-----------

``inpolyhedron`` first checks the point against every facet, and
otherwise casts rays in random directions and counts facet crossings.
A ray that grazes a facet boundary is discarded and a new direction is
drawn, up to ``max_attempts`` times.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict, deque
from enum import IntEnum
from typing import Dict, FrozenSet, List, Sequence, Tuple, Union

import numpy as np

from geocombsurf.affine import affinedim, as_points, ispairwisecongruent
from geocombsurf.errors import (
    DegenerateGeometryError,
    DimensionMismatchError,
    OrientationError,
    PathError,
    PreconditionError,
)
from geocombsurf.planar import Plane, Ray, inpolygon3d, intersect
from geocombsurf.tolerances import (
    DEFAULT_MAX_RAY_ATTEMPTS,
    EPS_AFFINE,
    EPS_CONTAINMENT,
    EPS_RIGID,
)

logger = logging.getLogger(__name__)

Edge = List[int]
Facet = List[int]


class Containment(IntEnum):
    """Result of ``inpolyhedron``."""

    BOUNDARY = -1
    OUTSIDE = 0
    INSIDE = 1
    INDETERMINATE = 2


def _cycle_edges(facet: Sequence[int]) -> List[FrozenSet[int]]:
    n = len(facet)
    return [frozenset((facet[i], facet[(i + 1) % n])) for i in range(n)]


def _labels(seq, nverts: int, what: str) -> List[int]:
    labels = []
    for v in seq:
        if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
            raise PreconditionError(f'{what} entries need to be integer vertex labels, got {v!r}')
        if v < 1 or v > nverts:
            raise PreconditionError(f'{what} refers to vertex {v}, but there are only {nverts} vertices')
        labels.append(int(v))
    return labels


def _check_verts(verts) -> np.ndarray:
    arr = as_points(verts)
    if arr.shape[0] == 0:
        raise PreconditionError('a polyhedron needs at least one vertex')
    if arr.shape[1] not in (2, 3):
        raise DimensionMismatchError('Only 2- and 3-dimensional polyhedra are supported.')
    return arr.copy()


def _check_edges(edges, nverts: int) -> List[Edge]:
    result = []
    seen = set()
    for e in edges:
        if len(e) != 2:
            raise PreconditionError('Edges need to consist of vectors of length 2.')
        a, b = _labels(e, nverts, 'edge')
        if a == b:
            raise PreconditionError(f'edge {[a, b]} is a loop')
        key = frozenset((a, b))
        if key in seen:
            raise PreconditionError(f'edge {[a, b]} appears more than once')
        seen.add(key)
        result.append([a, b])
    return result


def _check_facets(facets, verts: np.ndarray, atol: float = EPS_AFFINE) -> List[Facet]:
    result = []
    for f in facets:
        if len(f) < 3:
            raise PreconditionError(f'facet {list(f)} has fewer than three vertices')
        labels = _labels(f, verts.shape[0], 'facet')
        if len(set(labels)) != len(labels):
            raise PreconditionError(f'facet {labels} repeats a vertex')
        if affinedim(verts[np.asarray(labels) - 1], atol=atol) != 2:
            raise DegenerateGeometryError(
                f'Facets have to span affine spaces of dimension 2, but {labels} does not.')
        result.append(labels)

    cycles = [set(_cycle_edges(f)) for f in result]
    for j in range(len(result)):
        for k in range(j + 1, len(result)):
            if cycles[j] <= cycles[k] or cycles[k] <= cycles[j]:
                raise PreconditionError(
                    f'One of facets {result[j]} and {result[k]} is contained in the other.')
    return result


class Polyhedron:
    """Polyhedral surface given by vertices, edges and oriented facets."""

    def __init__(self, verts, edges, facets):
        self._verts = _check_verts(verts)
        self._edges = _check_edges(edges, self._verts.shape[0])
        self._facets = _check_facets(facets, self._verts)

    def get_verts(self) -> np.ndarray:
        return self._verts.copy()

    def set_verts(self, verts) -> None:
        """Replace the vertex coordinates.

        Existing edges and facets are validated against the new
        coordinates before anything is written.
        """

        arr = _check_verts(verts)
        _check_edges(self._edges, arr.shape[0])
        _check_facets(self._facets, arr)
        self._verts = arr

    def get_edges(self) -> List[Edge]:
        return [list(e) for e in self._edges]

    def set_edges(self, edges) -> None:
        self._edges = _check_edges(edges, self._verts.shape[0])

    def get_facets(self) -> List[Facet]:
        return [list(f) for f in self._facets]

    def set_facets(self, facets) -> None:
        self._facets = _check_facets(facets, self._verts)

    def _assign(self, verts, edges, facets) -> None:
        # validate everything first so that a failure leaves self untouched
        arr = _check_verts(verts)
        new_edges = _check_edges(edges, arr.shape[0])
        new_facets = _check_facets(facets, arr)
        self._verts, self._edges, self._facets = arr, new_edges, new_facets

    def __eq__(self, other):
        if not isinstance(other, Polyhedron):
            return NotImplemented
        if self._verts.shape[0] != other._verts.shape[0]:
            return False
        if len(self._edges) != len(other._edges):
            return False
        if {frozenset(e) for e in self._edges} != {frozenset(e) for e in other._edges}:
            return False
        if len(self._facets) != len(other._facets):
            return False
        return {frozenset(f) for f in self._facets} == {frozenset(f) for f in other._facets}

    __hash__ = None

    def __repr__(self) -> str:
        return (f'Polyhedron(verts={self._verts.tolist()}, '
                f'edges={self._edges}, facets={self._facets})')

    def __str__(self) -> str:
        return (f'Polyhedron embedded into {dimension(self)}-space with '
                f'{self._verts.shape[0]} vertices, {len(self._edges)} edges '
                f'and {len(self._facets)} facets.\n'
                f'    Edges:  {self._edges}\n'
                f'    Facets: {self._facets}\n')


def dimension(poly: Polyhedron) -> int:
    """Dimension of the space ``poly`` is embedded into."""

    return int(poly._verts.shape[1])


def _cyclic_key(facet: Sequence[int]) -> Tuple[int, ...]:
    # identical for all rotations and reversals of the same cycle
    n = len(facet)
    candidates = []
    for seq in (list(facet), list(reversed(facet))):
        for i in range(n):
            candidates.append(tuple(seq[i:] + seq[:i]))
    return min(candidates)


def iscongruent(poly1: Polyhedron, poly2: Polyhedron, atol: float = EPS_RIGID) -> bool:
    """Determine whether two polyhedra are congruent.

    They need the same combinatorics (edges, and facets up to
    orientation) and a rigid map taking the vertices of ``poly1`` to
    the vertices of ``poly2``, which exists exactly when all pairwise
    vertex distances agree.
    """

    if poly1._verts.shape[0] != poly2._verts.shape[0]:
        return False
    if {frozenset(e) for e in poly1._edges} != {frozenset(e) for e in poly2._edges}:
        return False
    keys1 = sorted(_cyclic_key(f) for f in poly1._facets)
    keys2 = sorted(_cyclic_key(f) for f in poly2._facets)
    if keys1 != keys2:
        return False
    return ispairwisecongruent(poly1._verts, poly2._verts, atol=atol)


def _isfacet(poly: Polyhedron, cells: Sequence[int]) -> bool:
    key = frozenset(cells)
    return any(frozenset(f) == key for f in poly._facets)


def _isedge(poly: Polyhedron, cells: Sequence[int]) -> bool:
    key = frozenset(cells)
    return any(frozenset(e) == key for e in poly._edges)


def _shares_edge(poly: Polyhedron, cells: Sequence[int], facet: Sequence[int]) -> bool:
    common = set(cells) & set(facet)
    return any(set(e) <= common for e in poly._edges)


def isadjacent(poly: Polyhedron, facetoredge: Sequence[int], facet: Sequence[int]) -> bool:
    """True if the facet or edge ``facetoredge`` shares an edge with ``facet``."""

    if not (_isfacet(poly, facetoredge) or _isedge(poly, facetoredge)):
        raise PreconditionError('facetoredge has to be a facet or an edge of poly.')
    if not _isfacet(poly, facet):
        raise PreconditionError('facet has to be a facet of poly.')
    return _shares_edge(poly, facetoredge, facet)


def adjfacets(poly: Polyhedron, facetoredge: Sequence[int]) -> List[Facet]:
    """Facets sharing at least one edge with the facet or edge ``facetoredge``."""

    if not (_isfacet(poly, facetoredge) or _isedge(poly, facetoredge)):
        raise PreconditionError('facetoredge has to be a facet or an edge of poly.')
    key = frozenset(facetoredge)
    return [list(f) for f in poly._facets
            if frozenset(f) != key and _shares_edge(poly, facetoredge, f)]


def isincident(v: int, facetoredge: Sequence[int]) -> bool:
    """True if vertex ``v`` lies on the facet or edge ``facetoredge``."""

    return v in facetoredge


def incfacets(poly: Polyhedron, vertices: Union[int, Sequence[int]]) -> List[Facet]:
    """Facets containing the vertex ``vertices``, or all of the given vertices."""

    if isinstance(vertices, (int, np.integer)):
        return [list(f) for f in poly._facets if isincident(vertices, f)]
    return [list(f) for f in poly._facets
            if all(isincident(v, f) for v in vertices)]


def incedges(poly: Polyhedron, cells: Union[int, Sequence[int]]) -> List[Edge]:
    """Edges containing the vertex ``cells``, or lying inside the facet ``cells``."""

    if isinstance(cells, (int, np.integer)):
        return [list(e) for e in poly._edges if isincident(cells, e)]
    members = set(cells)
    return [list(e) for e in poly._edges if set(e) <= members]


def formpath(vertices: Sequence[int],
             edges: Union[Polyhedron, Sequence[Sequence[int]]]) -> List[int]:
    """Arrange ``vertices`` so that consecutive entries are joined by an edge.

    ``edges`` is either a list of label pairs or a ``Polyhedron`` whose
    edges are used.  Only edges between the given vertices count.  A
    ``PathError`` is raised if the vertices branch or fall apart into
    several paths.  For a closed cycle the first vertex of the input is
    used as the start; any rotation of the cycle is a valid answer.
    """

    if isinstance(edges, Polyhedron):
        edges = edges._edges
    verts = list(vertices)
    members = set(verts)
    relevant = [list(e) for e in edges if e[0] in members and e[1] in members]
    keys = {frozenset(e) for e in relevant}
    degree: Dict[int, int] = {v: sum(1 for e in relevant if v in e) for v in verts}

    endpoints = [v for v in verts if degree[v] == 1]
    if len(endpoints) > 2:
        logger.info('vertexarray: %s', verts)
        logger.info('relevant edges: %s', relevant)
        logger.info('endpoints: %s', endpoints)
        raise PathError("Vertices don't lie on a common path")
    intersections = [v for v in verts if degree[v] > 2]
    if intersections:
        logger.info('vertexarray: %s', verts)
        logger.info('relevant edges: %s', relevant)
        logger.info('intersectionverts: %s', intersections)
        raise PathError('No intersections allowed.')
    if not verts:
        return []

    start = endpoints[0] if endpoints else verts[0]
    path = [start]
    remaining = list(verts)
    remaining.remove(start)
    while remaining:
        last = path[-1]
        nxt = next((v for v in remaining if frozenset((last, v)) in keys), None)
        if nxt is None:
            raise PathError(f'Vertices {remaining} are not connected to the path {path}')
        path.append(nxt)
        remaining.remove(nxt)
    return path


def _facet_points(verts: np.ndarray, facet: Sequence[int]) -> np.ndarray:
    return verts[np.asarray(facet) - 1]


def _signedmeasure(verts: np.ndarray, facets: Sequence[Sequence[int]]) -> float:
    # sum over the triangle fan of every facet; in 3-space each triangle
    # spans a tetrahedron with the origin, in 2-space it contributes its area
    d = verts.shape[1]
    total = 0.0
    for f in facets:
        pts = _facet_points(verts, f)
        for k in range(1, len(f) - 1):
            if d == 3:
                total += np.linalg.det(np.column_stack([pts[0], pts[k], pts[k + 1]])) / 6.0
            else:
                total += np.linalg.det(np.column_stack([pts[k] - pts[0], pts[k + 1] - pts[0]])) / 2.0
    return float(total)


def signedvolume(poly: Polyhedron) -> float:
    """Signed volume of ``poly`` with its facets taken as they are oriented.

    Positive when the facets wind counter-clockwise about outward
    normals.  For polyhedra in the plane this is the signed area.
    """

    return _signedmeasure(poly._verts, poly._facets)


def volume(poly: Polyhedron) -> float:
    """Volume of ``poly`` (area for polyhedra in the plane)."""

    return abs(signedvolume(orient_facets(poly)))


def _direction(facet: Sequence[int], a: int, b: int) -> int:
    # +1 if facet runs from a to b, -1 if it runs from b to a
    i = facet.index(a)
    j = facet.index(b)
    return 1 if (j - i) % len(facet) == 1 else -1


def orient_facets_inplace(poly: Polyhedron) -> None:
    """Orient the facets of ``poly`` consistently with outward normals.

    Raises ``OrientationError`` if an edge is shared by more than two
    facets, if the facets do not form a single edge-connected piece, or
    if no consistent orientation exists.
    """

    facets = [list(f) for f in poly._facets]
    if not facets:
        return

    owners: Dict[FrozenSet[int], List[int]] = defaultdict(list)
    for idx, f in enumerate(facets):
        for e in _cycle_edges(f):
            owners[e].append(idx)

    nonmanifold = [sorted(e) for e, idxs in owners.items() if len(idxs) > 2]
    if nonmanifold:
        raise OrientationError(f'edges shared by more than two facets: {nonmanifold}')

    neighbours: List[List[Tuple[int, Tuple[int, int]]]] = [[] for _ in facets]
    for e, idxs in owners.items():
        if len(idxs) == 2:
            i, j = idxs
            a, b = sorted(e)
            neighbours[i].append((j, (a, b)))
            neighbours[j].append((i, (a, b)))

    oriented = [False] * len(facets)
    oriented[0] = True
    active = deque([0])
    while active:
        i = active.popleft()
        for j, (a, b) in neighbours[i]:
            if oriented[j]:
                continue
            if _direction(facets[i], a, b) == _direction(facets[j], a, b):
                facets[j].reverse()
            oriented[j] = True
            active.append(j)

    stray = [facets[k] for k, done in enumerate(oriented) if not done]
    if stray:
        raise OrientationError(
            f'facet adjacency graph is not connected, could not reach {stray}')

    for e, idxs in owners.items():
        if len(idxs) == 2:
            a, b = sorted(e)
            i, j = idxs
            if _direction(facets[i], a, b) == _direction(facets[j], a, b):
                raise OrientationError(
                    f'facets {facets[i]} and {facets[j]} cannot be oriented consistently')

    if _signedmeasure(poly._verts, facets) < 0:
        logger.debug('reversing all %d facets to point normals outward', len(facets))
        facets = [list(reversed(f)) for f in facets]
    poly.set_facets(facets)


def orient_facets(poly: Polyhedron) -> Polyhedron:
    """Return a copy of ``poly`` with consistently, outward oriented facets."""

    polycopy = copy.deepcopy(poly)
    orient_facets_inplace(polycopy)
    return polycopy


def inpolyhedron(point, poly: Polyhedron, atol: float = EPS_CONTAINMENT,
                 max_attempts: int = DEFAULT_MAX_RAY_ATTEMPTS,
                 rng=None) -> Containment:
    """Decide whether ``point`` lies inside the 3-D polyhedron ``poly``.

    Returns ``Containment.BOUNDARY`` (-1) for points on a facet,
    ``Containment.OUTSIDE`` (0) or ``Containment.INSIDE`` (1).  If every
    one of ``max_attempts`` random rays grazes a facet boundary the
    answer is ``Containment.INDETERMINATE``.  ``rng`` may be a seed or a
    ``numpy.random.Generator``.
    """

    if dimension(poly) != 3:
        raise DimensionMismatchError('inpolyhedron needs a polyhedron in 3-space')
    q = np.asarray(point, dtype=float)
    if q.shape != (3,):
        raise DimensionMismatchError('point needs three coordinates')

    polygons = [_facet_points(poly._verts, f) for f in poly._facets]
    for polygon in polygons:
        if inpolygon3d(polygon, q, atol=atol) != 0:
            return Containment.BOUNDARY

    planes = [Plane(polygon) for polygon in polygons]
    gen = np.random.default_rng(rng)
    for attempt in range(max_attempts):
        direction = gen.standard_normal(3)
        if not np.any(direction):
            continue
        ray = Ray(q, direction)
        crossings = 0
        grazing = False
        for polygon, plane in zip(polygons, planes):
            hit = intersect(ray, plane)
            if hit is None:
                continue
            where = inpolygon3d(polygon, hit, atol=atol)
            if where == -1:
                grazing = True
                break
            if where == 1:
                crossings += 1
        if grazing:
            logger.debug('ray %d hit a facet boundary, retrying', attempt)
            continue
        return Containment.INSIDE if crossings % 2 == 1 else Containment.OUTSIDE

    logger.warning('no clean ray found for point %s after %d attempts',
                   q.tolist(), max_attempts)
    return Containment.INDETERMINATE


__all__ = [
    'Containment',
    'Polyhedron',
    'dimension',
    'iscongruent',
    'isadjacent',
    'adjfacets',
    'isincident',
    'incfacets',
    'incedges',
    'formpath',
    'signedvolume',
    'volume',
    'orient_facets',
    'orient_facets_inplace',
    'inpolyhedron',
]
