"""
Tests for checked and unchecked element access.
"""

import pytest

from dmat import DynamicMatrix, ElementRef, IndexingError, MatrixPanic


class TestCheckedAccess:
    """get/get_mut/set raise IndexingError, never panic."""

    def test_get_all_elements(self, matrix_3x3):
        for r in range(3):
            for c in range(3):
                assert matrix_3x3.get(r, c) == 3 * r + c + 1

    def test_get_both_out_of_range(self, matrix_3x3):
        with pytest.raises(IndexingError) as exc:
            matrix_3x3.get(3, 3)
        err = exc.value
        assert err.row_out_of_range
        assert err.col_out_of_range
        assert err.index == (3, 3)
        assert err.shape == (3, 3)
        assert len(str(err).splitlines()) == 2

    def test_get_row_out_of_range(self, matrix_3x2):
        with pytest.raises(IndexingError) as exc:
            matrix_3x2.get(3, 1)
        assert exc.value.row_out_of_range
        assert not exc.value.col_out_of_range

    def test_get_col_out_of_range(self, matrix_3x2):
        with pytest.raises(IndexingError) as exc:
            matrix_3x2.get(0, 2)
        assert not exc.value.row_out_of_range
        assert exc.value.col_out_of_range
        assert "[0, 2)" in str(exc.value)

    def test_negative_index_rejected(self, matrix_3x3):
        """Negative indices do not wrap."""
        with pytest.raises(IndexingError):
            matrix_3x3.get(-1, 0)
        with pytest.raises(IndexingError):
            matrix_3x3.get(0, -1)

    def test_get_on_empty(self):
        with pytest.raises(IndexingError):
            DynamicMatrix(3).get(0, 0)

    def test_non_integer_index(self, matrix_3x3):
        with pytest.raises(TypeError):
            matrix_3x3.get(1.0, 0)

    def test_is_index_error(self, matrix_3x3):
        """Callers may catch the builtin IndexError."""
        with pytest.raises(IndexError):
            matrix_3x3.get(10, 0)

    def test_set(self, matrix_3x3):
        matrix_3x3.set(1, 2, 60)
        assert matrix_3x3.get(1, 2) == 60
        assert matrix_3x3.as_slice()[5] == 60

    def test_set_out_of_range_leaves_matrix(self, matrix_3x3):
        before = matrix_3x3.tolist()
        with pytest.raises(IndexingError):
            matrix_3x3.set(0, 3, 0)
        assert matrix_3x3.tolist() == before

    def test_set_out_of_range_value(self):
        mat = DynamicMatrix.from_flat([1, 2], 2, dtype='int32')
        with pytest.raises(OverflowError):
            mat.set(0, 0, 2**40)
        with pytest.raises(OverflowError):
            mat[0, 1] = -2**40
        assert mat.tolist() == [[1, 2]]

    def test_set_bad_value(self):
        mat = DynamicMatrix.from_flat([1.0, 2.0], 2)
        with pytest.raises(TypeError):
            mat.set(0, 0, "x")
        assert mat.get(0, 0) == 1.0


class TestElementRef:

    def test_get_mut_reads_and_writes(self, matrix_3x3):
        ref = matrix_3x3.get_mut(2, 1)
        assert isinstance(ref, ElementRef)
        assert ref.value == 8
        ref.value = 80
        assert matrix_3x3.get(2, 1) == 80

    def test_get_mut_rejects_out_of_range_value(self):
        mat = DynamicMatrix.from_flat([7], 1, dtype='uint8')
        ref = mat.get_mut(0, 0)
        with pytest.raises(OverflowError):
            ref.value = 1000
        assert ref.value == 7

    def test_get_mut_out_of_range(self, matrix_3x3):
        with pytest.raises(IndexingError):
            matrix_3x3.get_mut(0, 5)

    def test_get_mut_object(self, object_matrix):
        ref = object_matrix.get_mut(0, 1)
        ref.value["k"] = 2
        assert object_matrix.get(0, 1) == {"k": 2}


class TestOperatorAccess:
    """mat[r, c] escalates out-of-range access to MatrixPanic."""

    def test_getitem(self, matrix_3x3):
        assert matrix_3x3[1, 1] == 5

    def test_setitem(self, matrix_3x3):
        matrix_3x3[0, 2] = 30
        assert matrix_3x3.get(0, 2) == 30

    def test_getitem_out_of_range_panics(self, matrix_3x3):
        with pytest.raises(MatrixPanic) as exc:
            _ = matrix_3x3[3, 0]
        assert isinstance(exc.value.__cause__, IndexingError)
        assert exc.value.cause is exc.value.__cause__

    def test_setitem_out_of_range_panics(self, matrix_3x3):
        with pytest.raises(MatrixPanic):
            matrix_3x3[0, 3] = 1

    def test_panic_escapes_except_exception(self, matrix_3x3):
        def swallow():
            try:
                return matrix_3x3[9, 9]
            except Exception:
                return "swallowed"

        with pytest.raises(MatrixPanic):
            swallow()

    def test_key_must_be_pair(self, matrix_3x3):
        with pytest.raises(TypeError):
            _ = matrix_3x3[1]
        with pytest.raises(TypeError):
            _ = matrix_3x3[0, 0, 0]


class TestRows:

    def test_row(self, matrix_3x3):
        assert matrix_3x3.row(1) == [4, 5, 6]

    def test_row_out_of_range(self, matrix_3x3):
        with pytest.raises(IndexingError):
            matrix_3x3.row(3)

    def test_iter_rows(self, matrix_3x2):
        assert list(matrix_3x2.iter_rows()) == [[1, 2], [4, 5], [7, 8]]

    def test_tolist(self, matrix_3x3):
        assert matrix_3x3.tolist() == [[1, 2, 3], [4, 5, 6], [7, 8, 9]]

    def test_tolist_zero_cols(self):
        assert DynamicMatrix(0).tolist() == []
