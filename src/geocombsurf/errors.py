"""Exceptions raised by geocombsurf.

All errors derive from ``ValueError`` so that callers already guarding
geometry calls with ``except ValueError`` keep working.
"""

from typing import Optional, Tuple


class GeometryError(ValueError):
    """Base class for every failure reported by geocombsurf."""


class PreconditionError(GeometryError):
    """Arguments or mesh data violate a documented precondition."""


class DimensionMismatchError(PreconditionError):
    """Coordinate dimensions or alignment lengths do not agree."""


class DegenerateGeometryError(PreconditionError):
    """Points are collinear, non-coplanar or otherwise degenerate."""


class PathError(PreconditionError):
    """A vertex list cannot be arranged into a simple edge path."""


class OrientationError(GeometryError):
    """Facets cannot be oriented consistently."""


class IncompatibleGeometryError(GeometryError):
    """Two point sets cannot be related by a distance-preserving map.

    ``pair`` names the offending pair of vertices (labels or positions,
    depending on the caller), ``expected`` is the distance in the
    preimage and ``actual`` the one found in the image.
    """

    def __init__(self, message: str,
                 pair: Optional[Tuple[int, int]] = None,
                 expected: Optional[float] = None,
                 actual: Optional[float] = None):
        super().__init__(message)
        self.pair = pair
        self.expected = expected
        self.actual = actual


__all__ = [
    'GeometryError',
    'PreconditionError',
    'DimensionMismatchError',
    'DegenerateGeometryError',
    'PathError',
    'OrientationError',
    'IncompatibleGeometryError',
]
