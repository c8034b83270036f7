"""Tests for dense and sparse matrices."""

import numpy as np
import pytest

from facedrive.core.matrix import (
    DenseMatrix, Matrix, NonInvertibleMatrixError, SparseMatrix, format_matrix,
)


def test_dense_zero_filled():
    m = DenseMatrix(2, 3)
    assert m.rows == 2
    assert m.cols == 3
    assert m.shape == (2, 3)
    for r in range(2):
        for c in range(3):
            assert m[r, c] == 0.0


def test_dense_from_values_and_set():
    m = DenseMatrix.from_values([[1, 2], [3, 4]])
    assert m[1, 0] == 3.0
    m[1, 0] = 7.5
    assert m[1, 0] == 7.5
    np.testing.assert_array_equal(m.row(1), [7.5, 4.0])


def test_dense_from_values_ragged():
    with pytest.raises(ValueError):
        DenseMatrix.from_values([[1, 2], [3]])


def test_dense_negative_dimensions():
    with pytest.raises(ValueError):
        DenseMatrix(-1, 2)


def test_index_out_of_range():
    m = DenseMatrix(2, 2)
    with pytest.raises(IndexError):
        m[2, 0]
    with pytest.raises(IndexError):
        m[0, -1] = 1.0


def test_row_is_writable_view():
    m = DenseMatrix(2, 2)
    m.row(0)[1] = 3.0
    assert m[0, 1] == 3.0
    m.set_row(1, [5.0, 6.0])
    assert m[1, 1] == 6.0
    with pytest.raises(ValueError):
        m.set_row(0, [1.0])


def test_equals_with_tolerance():
    a = DenseMatrix.from_values([[1.0, 2.0], [3.0, 4.0]])
    b = DenseMatrix.from_values([[1.0 + 1e-6, 2.0], [3.0, 4.0]])
    c = DenseMatrix.from_values([[1.001, 2.0], [3.0, 4.0]])
    assert a.equals(b)
    assert a == b
    assert not a.equals(c)
    assert a.equals(c, eps=1e-2)


def test_equals_dimension_mismatch():
    assert not DenseMatrix(2, 2).equals(DenseMatrix(2, 3))
    assert not DenseMatrix(2, 2).equals(None)


def test_invert_matches_numpy():
    values = [[1.0, 0.5], [0.25, 1.0]]
    m = DenseMatrix.from_values(values)
    m.invert()
    np.testing.assert_allclose(m.to_array(), np.linalg.inv(values), atol=1e-9)


def test_invert_identity():
    m = DenseMatrix.from_values(np.eye(3).tolist())
    m.invert()
    np.testing.assert_allclose(m.to_array(), np.eye(3))


def test_invert_round_trip():
    values = [
        [1.0, 0.5, 0.0, 0.2],
        [0.2, 1.0, 0.1, 0.0],
        [0.0, 0.3, 1.0, 0.4],
        [0.1, 0.0, 0.25, 1.0],
    ]
    original = DenseMatrix.from_values(values)
    m = DenseMatrix.from_values(values)
    m.invert()
    assert not m.equals(original)
    m.invert()
    assert m.equals(original)


def test_invert_product_is_identity():
    values = [[1.0, 0.5, 1.0], [0.0, 0.5, 0.0], [0.0, 0.0, 1.0]]
    m = DenseMatrix.from_values(values)
    m.invert()
    product = DenseMatrix.matmul(DenseMatrix.from_values(values), m)
    np.testing.assert_allclose(product.to_array(), np.eye(3), atol=1e-9)


def test_invert_singular_raises():
    m = DenseMatrix.from_values([[1.0, 1.0], [1.0, 1.0]])
    with pytest.raises(NonInvertibleMatrixError):
        m.invert()


def test_invert_zero_pivot_raises():
    # Invertible in general, but not without row exchanges
    m = DenseMatrix.from_values([[0.0, 1.0], [1.0, 0.0]])
    with pytest.raises(ArithmeticError):
        m.invert()


def test_invert_requires_square():
    with pytest.raises(ValueError):
        DenseMatrix(2, 3).invert()


def test_transpose():
    m = DenseMatrix.from_values([[1, 2, 3], [4, 5, 6], [7, 8, 9]])
    m.transpose()
    np.testing.assert_array_equal(m.to_array(), [[1, 4, 7], [2, 5, 8], [3, 6, 9]])


def test_transpose_requires_square():
    with pytest.raises(ValueError):
        DenseMatrix(2, 3).transpose()


def test_dense_mult():
    m = DenseMatrix.from_values([[1, 2, 3], [4, 5, 6]])
    result = np.zeros(3)
    Matrix.mult(np.array([1.0, 2.0]), m, result)
    np.testing.assert_array_equal(result, [9, 12, 15])


def test_mult_into_list():
    m = DenseMatrix.from_values([[1, 2], [3, 4]])
    result = [0.0, 0.0]
    Matrix.mult([1.0, 1.0], m, result)
    assert result == pytest.approx([4.0, 6.0])


def test_mult_size_mismatch():
    m = DenseMatrix(2, 3)
    with pytest.raises(ValueError):
        Matrix.mult([1.0], m, np.zeros(3))
    with pytest.raises(ValueError):
        Matrix.mult([1.0, 2.0], m, np.zeros(2))


def test_matmul():
    a = DenseMatrix.from_values([[1, 2], [3, 4]])
    b = DenseMatrix.from_values([[0, 1, 0], [1, 0, 2]])
    product = DenseMatrix.matmul(a, b)
    np.testing.assert_array_equal(product.to_array(), [[2, 1, 4], [4, 3, 8]])
    with pytest.raises(ValueError):
        DenseMatrix.matmul(b, b)


def test_sparse_thresholding():
    dense = DenseMatrix.from_values([[1.0, 0.0005], [0.0, -0.5]])
    s = SparseMatrix(dense)
    assert s.shape == (2, 2)
    assert s.nnz == 2
    assert s[0, 0] == 1.0
    assert s[0, 1] == 0.0
    assert s[1, 1] == -0.5
    assert sorted(s.entries) == [(0, 0, 1.0), (1, 1, -0.5)]


def test_sparse_custom_threshold():
    dense = DenseMatrix.from_values([[0.2, 0.05], [0.0, 0.5]])
    assert SparseMatrix(dense, threshold=0.1).nnz == 2
    assert SparseMatrix(dense, threshold=0.0).nnz == 3


def test_sparse_is_read_only():
    s = SparseMatrix(DenseMatrix.from_values([[1.0]]))
    with pytest.raises(TypeError, match="SparseMatrix is read-only"):
        s[0, 0] = 2.0
    assert s[0, 0] == 1.0


def test_sparse_dense_equivalence():
    rng = np.random.default_rng(7)
    values = rng.uniform(-1.0, 1.0, size=(6, 5))
    values[np.abs(values) < 0.3] = 0.0
    dense = DenseMatrix.from_values(values.tolist())
    s = SparseMatrix(dense)

    for _ in range(5):
        vec = rng.uniform(0.0, 1.0, size=6)
        expected = np.zeros(5)
        actual = np.zeros(5)
        Matrix.mult(vec, dense, expected)
        Matrix.mult(vec, s, actual)
        np.testing.assert_allclose(actual, expected, atol=1e-9)

    assert s.equals(dense)


def test_sparse_dense_equivalence_with_dropped_entries():
    dense = DenseMatrix.from_values([[0.5, 0.0004], [0.0008, 0.25]])
    s = SparseMatrix(dense)
    vec = [1.0, 1.0]
    expected = np.zeros(2)
    actual = np.zeros(2)
    Matrix.mult(vec, dense, expected)
    Matrix.mult(vec, s, actual)
    np.testing.assert_allclose(actual, expected, atol=1e-3)
    assert s.equals(dense, eps=1e-3)


def test_sparse_mult_overwrites_result():
    s = SparseMatrix(DenseMatrix.from_values([[0.0, 2.0], [0.0, 0.0]]))
    result = np.array([5.0, 5.0])
    Matrix.mult([1.0, 1.0], s, result)
    np.testing.assert_array_equal(result, [0.0, 2.0])


def test_format_matrix():
    m = DenseMatrix.from_values([[1.0, 0.5], [0.0, -0.25]])
    assert format_matrix(m) == "1.000 0.500\n0.000 -0.250"
