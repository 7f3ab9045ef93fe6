"""Rank and column-space helpers for real matrices.

These are thin wrappers around :mod:`numpy.linalg` that make the
tolerance explicit.  Columns are the unit of independence throughout:
``indcols_indices`` scans the columns of ``A`` left to right and keeps
every column that is not already in the span of the ones kept before.
"""

from __future__ import annotations

from typing import List

import numpy as np

from geocombsurf.tolerances import EPS_RANK


def _as_matrix(A) -> np.ndarray:
    M = np.asarray(A, dtype=float)
    if M.ndim == 1:
        M = M.reshape(-1, 1)
    if M.ndim != 2:
        raise ValueError('expected a two-dimensional matrix')
    return M


def rank(A, atol: float = EPS_RANK) -> int:
    """Return the number of singular values of ``A`` larger than ``atol``."""

    M = _as_matrix(A)
    if M.size == 0:
        return 0
    return int(np.linalg.matrix_rank(M, tol=atol))


def indcols_indices(A, atol: float = EPS_RANK) -> List[int]:
    """Return the 0-based positions of a maximal independent column subset.

    The scan is greedy in column order, so the first column is always
    kept unless it is (numerically) zero.
    """

    M = _as_matrix(A)
    rows, cols = M.shape
    keep: List[int] = []
    for j in range(cols):
        if len(keep) == rows:
            break
        if rank(M[:, keep + [j]], atol=atol) > len(keep):
            keep.append(j)
    return keep


def indcols(A, atol: float = EPS_RANK) -> np.ndarray:
    """Return the independent columns of ``A`` picked by ``indcols_indices``."""

    M = _as_matrix(A)
    return M[:, indcols_indices(M, atol=atol)]


def colspace(A, atol: float = EPS_RANK) -> np.ndarray:
    """Return an orthonormal basis of the column space of ``A``.

    The result has shape ``(rows, rank(A))``.
    """

    M = _as_matrix(A)
    if M.size == 0:
        return np.zeros((M.shape[0], 0))
    u, s, _ = np.linalg.svd(M, full_matrices=False)
    r = int(np.sum(s > atol))
    return u[:, :r]


__all__ = ['rank', 'indcols_indices', 'indcols', 'colspace']
