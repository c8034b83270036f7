"""Minimal matrix types for face retargeting: dense and sparse row-vector products.

Only the operations the retargeting solver needs are provided.  Vectors are
plain sequences (NumPy arrays or lists); results are written in place so the
per-frame path does not allocate new containers.

``DenseMatrix.invert`` is a restricted Gaussian elimination without pivoting.
It is meant for the cross-evaluation matrices built from retargeting rules,
which are diagonally dominant by construction, and is not a general-purpose
inverse.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, MutableSequence, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy import sparse

from facedrive.constants import MATRIX_EPS, SPARSE_THRESHOLD


class NonInvertibleMatrixError(ArithmeticError):
    """Raised when elimination meets a pivot too close to zero."""


class Matrix(ABC):
    """Abstract matrix with element access and a row-vector product."""

    EPS = MATRIX_EPS

    @property
    @abstractmethod
    def rows(self) -> int:
        ...

    @property
    @abstractmethod
    def cols(self) -> int:
        ...

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def __getitem__(self, key: tuple[int, int]) -> float:
        row, col = key
        self._check_index(row, col)
        return self._get_element(row, col)

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        row, col = key
        self._check_index(row, col)
        self._set_element(row, col, value)

    def _check_index(self, row: int, col: int) -> None:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(
                f"Index ({row}, {col}) out of range for {self.rows}x{self.cols} matrix"
            )

    @abstractmethod
    def _get_element(self, row: int, col: int) -> float:
        ...

    def _set_element(self, row: int, col: int, value: float) -> None:
        raise TypeError(f"{type(self).__name__} is read-only")

    def equals(self, other: "Matrix", eps: float = MATRIX_EPS) -> bool:
        """Element-wise comparison within ``eps``.  Slow for sparse matrices."""
        if other is None or self.rows != other.rows or self.cols != other.cols:
            return False

        for row in range(self.rows):
            for col in range(self.cols):
                if abs(self[row, col] - other[row, col]) > eps:
                    return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    @staticmethod
    def mult(
        row_vector: Sequence[float],
        m: "Matrix",
        result: MutableSequence[float],
    ) -> None:
        """Compute ``result = row_vector * m`` into a preallocated ``result``."""
        if len(row_vector) != m.rows:
            raise ValueError(f"Expected a row vector of length {m.rows}, got {len(row_vector)}")
        if len(result) != m.cols:
            raise ValueError(f"Expected a result of length {m.cols}, got {len(result)}")

        m._mult_vect_with_matrix(row_vector, result)

    @abstractmethod
    def _mult_vect_with_matrix(
        self, row_vector: Sequence[float], result: MutableSequence[float]
    ) -> None:
        ...

    def to_array(self) -> NDArray[np.float64]:
        out = np.zeros((self.rows, self.cols), dtype=np.float64)
        for row in range(self.rows):
            for col in range(self.cols):
                out[row, col] = self[row, col]
        return out


class DenseMatrix(Matrix):
    """Full ``rows x cols`` grid backed by a float64 NumPy array."""

    def __init__(self, rows: int, cols: int) -> None:
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got {rows}x{cols}")
        self._data = np.zeros((rows, cols), dtype=np.float64)

    @classmethod
    def from_values(cls, values: Sequence[Sequence[float]]) -> "DenseMatrix":
        """Build a matrix from nested row lists."""
        rows = len(values)
        cols = len(values[0]) if rows > 0 else 0
        m = cls(rows, cols)
        for r, row in enumerate(values):
            if len(row) != cols:
                raise ValueError(f"Row {r} has {len(row)} values, expected {cols}")
            m._data[r, :] = row
        return m

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    def _get_element(self, row: int, col: int) -> float:
        return float(self._data[row, col])

    def _set_element(self, row: int, col: int, value: float) -> None:
        self._data[row, col] = value

    def row(self, row: int) -> NDArray[np.float64]:
        """Return a writable view of one row."""
        return self._data[row]

    def set_row(self, row: int, values: Sequence[float]) -> None:
        if len(values) != self.cols:
            raise ValueError(f"Expected {self.cols} values, got {len(values)}")
        self._data[row, :] = values

    def to_array(self) -> NDArray[np.float64]:
        return self._data.copy()

    def invert(self) -> None:
        """Invert in place by Gaussian elimination on ``[A | I]``.

        Assumes a square matrix whose pivots stay non-zero without row
        exchanges (the rule cross-evaluation matrix has a unit diagonal).
        Raises NonInvertibleMatrixError when a pivot magnitude drops below eps.
        """
        if self.rows != self.cols:
            raise ValueError(f"Only square matrices can be inverted, got {self.rows}x{self.cols}")

        n = self.rows
        augmented = DenseMatrix(n, n * 2)
        augmented._data[:, :n] = self._data
        augmented._data[:, n:] = np.eye(n, dtype=np.float64)

        augmented._forward_elimination()
        augmented._normalize_diagonal()
        augmented._back_substitution()

        self._data[:, :] = augmented._data[:, n:]

    def transpose(self) -> None:
        """Transpose in place.  Square matrices only."""
        if self.rows != self.cols:
            raise ValueError("Only supporting transpose of square matrices for now")

        for r in range(self.rows):
            for c in range(r + 1, self.cols):
                self._data[r, c], self._data[c, r] = self._data[c, r], self._data[r, c]

    def _add_row(self, dest_row: int, src_row: int, mult: float) -> None:
        if abs(mult) < self.EPS:
            return
        self._data[dest_row] += self._data[src_row] * mult

    def _pivot(self, row: int) -> float:
        pivot = self._data[row, row]
        if abs(pivot) < self.EPS:
            raise NonInvertibleMatrixError(f"Non-invertible matrix found (pivot {row} is {pivot:g})")
        return pivot

    def _forward_elimination(self) -> None:
        for r in range(1, self.rows):
            for c in range(r):
                self._add_row(r, c, -self._data[r, c] / self._pivot(c))

    def _normalize_diagonal(self) -> None:
        for r in range(self.rows):
            self._data[r] /= self._pivot(r)

    def _back_substitution(self) -> None:
        for r in range(self.rows - 1):
            for c in range(r + 1, self.rows):
                self._add_row(r, c, -self._data[r, c] / self._data[c, c])

    def _mult_vect_with_matrix(
        self, row_vector: Sequence[float], result: MutableSequence[float]
    ) -> None:
        result[:] = np.asarray(row_vector, dtype=np.float64) @ self._data

    @staticmethod
    def matmul(m1: "DenseMatrix", m2: "DenseMatrix") -> "DenseMatrix":
        """Return the dense product ``m1 * m2``."""
        if m1.cols != m2.rows:
            raise ValueError(f"Cannot multiply {m1.rows}x{m1.cols} by {m2.rows}x{m2.cols}")

        result = DenseMatrix(m1.rows, m2.cols)
        for r in range(m1.rows):
            Matrix.mult(m1._data[r], m2, result._data[r])
        return result


class SparseMatrix(Matrix):
    """Read-only coordinate-list matrix built by thresholding a DenseMatrix.

    Construction scans every dense cell once.  Element reads are for tests and
    diagnostics; the per-frame path uses ``Matrix.mult``.
    """

    def __init__(self, m: DenseMatrix, threshold: float = SPARSE_THRESHOLD) -> None:
        dense = m.to_array()
        rows, cols = np.nonzero(np.abs(dense) > threshold)
        self._coo = sparse.coo_matrix(
            (dense[rows, cols], (rows, cols)), shape=dense.shape, dtype=np.float64,
        )
        self._csr = self._coo.tocsr()
        # row_vector * M == M^T * row_vector
        self._transposed = self._csr.T.tocsr()

    @property
    def rows(self) -> int:
        return self._coo.shape[0]

    @property
    def cols(self) -> int:
        return self._coo.shape[1]

    @property
    def nnz(self) -> int:
        return int(self._coo.nnz)

    @property
    def entries(self) -> Iterator[tuple[int, int, float]]:
        """Yield the stored ``(row, col, value)`` triples."""
        for row, col, value in zip(self._coo.row, self._coo.col, self._coo.data):
            yield int(row), int(col), float(value)

    def _get_element(self, row: int, col: int) -> float:
        return float(self._csr[row, col])

    def _mult_vect_with_matrix(
        self, row_vector: Sequence[float], result: MutableSequence[float]
    ) -> None:
        result[:] = self._transposed.dot(np.asarray(row_vector, dtype=np.float64))

    def to_array(self) -> NDArray[np.float64]:
        return self._csr.toarray()


def format_matrix(m: Matrix) -> str:
    """Render a matrix as whitespace-separated rows with 3 decimals."""
    lines = []
    for r in range(m.rows):
        lines.append(" ".join(f"{m[r, c]:.3f}" for c in range(m.cols)))
    return "\n".join(lines)
