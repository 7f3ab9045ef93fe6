"""Validation helpers for polyhedra."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List

from geocombsurf.polyhedron import Polyhedron


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


def _facet_edges(facet: List[int]) -> List[tuple[int, int]]:
    n = len(facet)
    return [_edge_key(facet[i], facet[(i + 1) % n]) for i in range(n)]


def _runs_forward(facet: List[int], a: int, b: int) -> bool:
    # true if b directly follows a along the facet cycle
    i = facet.index(a)
    return facet[(i + 1) % len(facet)] == b


def facets_oriented(poly: Polyhedron) -> "CheckResult":
    """Check that adjacent facets traverse their shared edges in opposite directions."""

    if not isinstance(poly, Polyhedron):
        raise ValueError('facets_oriented expects a Polyhedron')

    facets = poly.get_facets()
    owners = {}
    inconsistent = []

    for idx, facet in enumerate(facets):
        for a, b in _facet_edges(facet):
            owners.setdefault((a, b), []).append(idx)

    for (a, b), idxs in owners.items():
        if len(idxs) != 2:
            continue
        i, j = idxs
        if _runs_forward(facets[i], a, b) == _runs_forward(facets[j], a, b):
            inconsistent.append([a, b])

    if inconsistent:
        return CheckResult(False, [f'inconsistently oriented edges: {sorted(inconsistent)}'])
    return CheckResult(True, [])


def polyhedron_closed(poly: Polyhedron) -> "CheckResult":
    """Check that every facet boundary edge is shared by exactly two facets."""

    if not isinstance(poly, Polyhedron):
        raise ValueError('polyhedron_closed expects a Polyhedron')

    edges = Counter()
    for facet in poly.get_facets():
        for key in _facet_edges(facet):
            edges[key] += 1

    boundary = [edge for edge, count in edges.items() if count == 1]
    invalid = [edge for edge, count in edges.items() if count > 2]

    warnings: List[str] = []
    ok = True
    if boundary:
        ok = False
        warnings.append(f'{len(boundary)} boundary edges detected')
    if invalid:
        ok = False
        warnings.append(f'edges with multiplicity >2: {invalid}')

    return CheckResult(ok, warnings)


def edges_cover_facets(poly: Polyhedron) -> "CheckResult":
    """Check that every facet boundary edge is an edge of the polyhedron."""

    if not isinstance(poly, Polyhedron):
        raise ValueError('edges_cover_facets expects a Polyhedron')

    known = {_edge_key(a, b) for a, b in poly.get_edges()}
    missing = sorted({key for facet in poly.get_facets()
                      for key in _facet_edges(facet) if key not in known})
    if missing:
        return CheckResult(False, [f'facet edges missing from the edge list: {missing}'])
    return CheckResult(True, [])


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


__all__ = [
    'CheckResult',
    'facets_oriented',
    'polyhedron_closed',
    'edges_cover_facets',
]
