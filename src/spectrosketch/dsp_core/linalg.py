"""
Dense Linear Algebra Helpers

Small set of matrix operations backing the filterbank path of the mel
scale mapper (mel filterbank -> pseudo-inverse -> linear spectrogram).

Methods:
    - transpose / multiply / apply: shape-checked wrappers over numpy
    - invert: Gauss-Jordan elimination with partial pivoting
    - pseudo_inverse: Moore-Penrose inverse of a full-rank matrix through
      the normal equations

Usage:
    >>> from spectrosketch.dsp_core.linalg import pseudo_inverse
    >>> fb_pinv = pseudo_inverse(filterbank)  # (n_freqs, n_mels)
"""

from typing import Sequence, Union

import numpy as np

from .errors import DimensionMismatchError, SingularMatrixError

ArrayLike = Union[np.ndarray, Sequence[Sequence[float]]]


def as_matrix(a: ArrayLike, dtype=np.float64, name: str = 'matrix') -> np.ndarray:
    """
    Convert nested sequences to a 2-D array, rejecting ragged rows.

    Raises
    ------
    DimensionMismatchError
        If rows differ in length or the result is not 2-D.
    """
    if isinstance(a, np.ndarray):
        arr = a.astype(dtype, copy=False)
    else:
        rows = list(a)
        lengths = {len(row) for row in rows}
        if len(lengths) > 1:
            raise DimensionMismatchError(
                f"{name} rows have unequal lengths: {sorted(lengths)}"
            )
        arr = np.array(rows, dtype=dtype)
        if arr.ndim == 1 and arr.size == 0:
            arr = arr.reshape(0, 0)

    if arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be 2D, got shape {arr.shape}")
    return arr


def transpose(a: ArrayLike) -> np.ndarray:
    """Return a new (cols, rows) array."""
    return as_matrix(a).T.copy()


def multiply(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Matrix product a @ b; inner dimensions must agree."""
    a = as_matrix(a, name='a')
    b = as_matrix(b, name='b')
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatchError(
            f"Cannot multiply {a.shape} by {b.shape}: inner dimensions differ"
        )
    return a @ b


def apply(matrix: ArrayLike, vector: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    """Matrix-vector product."""
    matrix = as_matrix(matrix)
    vector = np.asarray(vector, dtype=np.float64)
    if vector.ndim != 1 or matrix.shape[1] != vector.shape[0]:
        raise DimensionMismatchError(
            f"Cannot apply {matrix.shape} matrix to vector of shape {vector.shape}"
        )
    return matrix @ vector


def invert(a: ArrayLike, tol: float = 1e-12) -> np.ndarray:
    """
    Invert a square matrix by Gauss-Jordan elimination with partial pivoting.

    For each column the row with the largest absolute value in the remaining
    part of that column is swapped into the pivot position.

    Parameters
    ----------
    a : array-like
        Square matrix, shape (n, n)
    tol : float
        Pivots with absolute value <= tol are treated as zero

    Returns
    -------
    np.ndarray
        Inverse, shape (n, n)

    Raises
    ------
    DimensionMismatchError
        If the matrix is not square.
    SingularMatrixError
        If no usable pivot exists for some column.
    """
    work = as_matrix(a).copy()
    n, m = work.shape
    if n != m:
        raise DimensionMismatchError(f"Only square matrices can be inverted, got {work.shape}")

    result = np.eye(n)

    for col in range(n):
        # Find pivot
        pivot_row = col + int(np.argmax(np.abs(work[col:, col])))
        pivot = work[pivot_row, col]
        if abs(pivot) <= tol:
            raise SingularMatrixError(
                f"Matrix is singular: pivot {pivot:.3e} in column {col}"
            )

        # Swap rows
        if pivot_row != col:
            work[[col, pivot_row]] = work[[pivot_row, col]]
            result[[col, pivot_row]] = result[[pivot_row, col]]

        # Scale pivot row
        work[col] /= pivot
        result[col] /= pivot

        # Eliminate the column from every other row
        for row in range(n):
            if row != col:
                factor = work[row, col]
                if factor != 0.0:
                    work[row] -= factor * work[col]
                    result[row] -= factor * result[col]

    return result


def pseudo_inverse(a: ArrayLike, tol: float = 1e-12) -> np.ndarray:
    """
    Moore-Penrose pseudo-inverse of a full-rank matrix.

    Uses the Gram matrix of the smaller dimension so it is invertible for
    full-rank input. This is the reverse of the textbook pairing sometimes
    written as (M^T M)^-1 M^T for every shape: for a wide mel filterbank
    (n_mels x n_freqs) M^T M is n_freqs x n_freqs with rank n_mels, so it
    is always singular and only M M^T can be inverted.

        rows < cols (wide, full row rank):    M^T (M M^T)^-1
        rows >= cols (tall, full col rank):   (M^T M)^-1 M^T

    Returns
    -------
    np.ndarray
        Shape (cols, rows)

    Raises
    ------
    SingularMatrixError
        If the matrix is rank deficient.
    """
    m = as_matrix(a)
    mt = transpose(m)
    rows, cols = m.shape

    if rows < cols:
        return multiply(mt, invert(multiply(m, mt), tol=tol))
    return multiply(invert(multiply(mt, m), tol=tol), mt)
