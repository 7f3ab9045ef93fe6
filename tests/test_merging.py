import math

import numpy as np
import pytest

from geocombsurf.checks import polyhedron_closed
from geocombsurf.errors import (
    DegenerateGeometryError,
    DimensionMismatchError,
    IncompatibleGeometryError,
    PreconditionError,
)
from geocombsurf.merging import merge, merge_inplace
from geocombsurf.polyhedron import Containment, inpolyhedron, volume
from geocombsurf.shapes import nprism, square


def _labels(cells):
    return sorted({v for cell in cells for v in cell})


def test_merge_two_cubes():
    cube1 = nprism(4)
    cube2 = nprism(4)
    poly = merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])

    assert len(poly.get_verts()) == len(cube1.get_verts()) + len(cube2.get_verts()) - 4
    assert _labels(poly.get_edges()) == list(range(1, 13))
    assert len(poly.get_edges()) == len(cube1.get_edges()) + len(cube2.get_edges()) - 4
    assert _labels(poly.get_facets()) == list(range(1, 13))
    assert len(poly.get_facets()) == len(cube1.get_facets()) + len(cube2.get_facets()) - 2


def test_merged_cubes_form_a_closed_solid():
    poly = merge(nprism(4), nprism(4), [[1, 2, 3, 4]], [[1, 2, 3, 4]])
    verts = poly.get_verts()
    # the second cube is flipped below the glued square
    assert np.allclose(verts[8:, 2], -1.0)
    assert polyhedron_closed(poly)
    assert math.isclose(volume(poly), 2.0)
    assert inpolyhedron([0.0, 0.0, -0.5], poly, rng=4) == Containment.INSIDE
    assert inpolyhedron([0.0, 0.0, 0.0], poly, rng=4) == Containment.INSIDE
    assert inpolyhedron([0.0, 0.0, -1.5], poly, rng=4) == Containment.OUTSIDE


def test_merge_triangular_prisms_along_a_side():
    prism1 = nprism(3)
    prism2 = nprism(3)
    poly = merge(prism1, prism2, [[1, 2, 5, 4]], [[1, 2, 5, 4]])
    assert len(poly.get_verts()) == 8
    assert len(poly.get_facets()) == 8
    assert len(poly.get_edges()) == 2 * 9 - 4
    assert polyhedron_closed(poly)
    assert math.isclose(volume(poly), 2 * math.sqrt(3.0) / 4.0)


def test_merge_leaves_inputs_untouched():
    cube1 = nprism(4)
    cube2 = nprism(4)
    verts1 = cube1.get_verts()
    verts2 = cube2.get_verts()
    merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])
    assert cube1 == nprism(4)
    assert np.array_equal(cube1.get_verts(), verts1)
    assert np.array_equal(cube2.get_verts(), verts2)


def test_merge_inplace():
    cube1 = nprism(4)
    cube2 = nprism(4)
    expected = merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])
    assert merge_inplace(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]]) is None
    assert cube1 == expected
    assert np.allclose(cube1.get_verts(), expected.get_verts())
    assert cube2 == nprism(4)


def test_merge_preconditions():
    cube1 = nprism(4)
    cube2 = nprism(4)
    with pytest.raises(DimensionMismatchError):
        merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4], [5, 6, 2, 1]])
    with pytest.raises(PreconditionError, match='consist of facets'):
        merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 5]])
    with pytest.raises(PreconditionError, match='consist of facets'):
        merge(cube1, cube2, [[1, 2, 3, 5]], [[1, 2, 3, 4]])
    with pytest.raises(PreconditionError, match='well defined'):
        merge(cube1, cube2, [[1, 2, 3, 4], [1, 2, 3, 4]], [[1, 2, 3, 4], [5, 6, 2, 1]])
    with pytest.raises(DegenerateGeometryError):
        merge(cube1, cube2, [], [])
    with pytest.raises(DimensionMismatchError):
        merge(square(), cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])


def test_merge_rejects_mismatched_distances():
    cube1 = nprism(4)
    cube2 = nprism(4)
    with pytest.raises(IncompatibleGeometryError, match='cannot be merged') as excinfo:
        merge(cube1, cube2, [[1, 2, 3, 4]], [[2, 1, 3, 4]])
    assert excinfo.value.pair == (1, 3)

    cube2.set_verts(3 * cube2.get_verts())
    with pytest.raises(IncompatibleGeometryError, match='cannot be merged'):
        merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])


def test_failed_merge_leaves_target_untouched():
    cube1 = nprism(4)
    cube2 = nprism(4)
    cube2.set_verts(2 * cube2.get_verts())
    with pytest.raises(IncompatibleGeometryError):
        merge_inplace(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])
    assert cube1 == nprism(4)
    assert np.array_equal(cube1.get_verts(), nprism(4).get_verts())


def test_merge_uses_the_given_tolerance_throughout():
    cube1 = nprism(4)
    cube2 = nprism(4)
    cube2.set_verts(cube2.get_verts() * (1 + 1e-6))
    with pytest.raises(IncompatibleGeometryError, match='cannot be merged'):
        merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]])

    poly = merge(cube1, cube2, [[1, 2, 3, 4]], [[1, 2, 3, 4]], atol=1e-4)
    assert len(poly.get_verts()) == 12
    assert polyhedron_closed(poly)
    assert math.isclose(volume(poly), 2.0, rel_tol=1e-4)
