"""
Tests for error types.
"""

import pickle

import pytest

from dmat import DmatError, ShapeError, IndexingError, DetachedError, MatrixPanic


class TestShapeError:
    """ShapeError fields and messages."""

    def test_cols_error(self):
        err = ShapeError.cols_error(4, 3)
        assert err.actual == 4
        assert err.expected == 3
        assert err.axis == "cols"
        assert "expected 3 cols" in str(err)

    def test_rows_error(self):
        err = ShapeError.rows_error(2, 3)
        assert err.axis == "rows"
        assert "expected 3 rows" in str(err)

    def test_from_shapes_reports_rows_first(self):
        err = ShapeError.from_shapes((2, 5), (3, 4))
        assert err.axis == "rows"
        assert (err.actual, err.expected) == (2, 3)

        err = ShapeError.from_shapes((3, 5), (3, 4))
        assert err.axis == "cols"
        assert (err.actual, err.expected) == (5, 4)

    def test_flat_length_error(self):
        err = ShapeError.flat_length_error(7, 3)
        assert err.actual == 7
        assert err.expected == 6
        assert "length 7" in str(err)

    def test_hierarchy(self):
        err = ShapeError.cols_error(1, 2)
        assert isinstance(err, DmatError)
        assert isinstance(err, ValueError)

    def test_pickle(self):
        err = pickle.loads(pickle.dumps(ShapeError.rows_error(2, 3)))
        assert (err.actual, err.expected, err.axis) == (2, 3, "rows")


class TestIndexingError:
    """IndexingError fields and messages."""

    def test_both_axes(self):
        err = IndexingError((3, 3), (3, 3))
        assert err.row_out_of_range
        assert err.col_out_of_range
        lines = str(err).splitlines()
        assert len(lines) == 2
        assert "row 3" in lines[0]
        assert "column 3" in lines[1]

    def test_row_only(self):
        err = IndexingError((5, 0), (3, 3))
        assert err.row_out_of_range
        assert not err.col_out_of_range
        assert str(err) == "Attempted indexing row 5. The row index should be in [0, 3)"

    def test_col_only(self):
        err = IndexingError((0, 4), (3, 3))
        assert not err.row_out_of_range
        assert err.col_out_of_range
        assert "[0, 3)" in str(err)

    def test_fields(self):
        err = IndexingError((1, 7), (2, 4))
        assert err.index == (1, 7)
        assert err.shape == (2, 4)

    def test_hierarchy(self):
        err = IndexingError((0, 9), (1, 1))
        assert isinstance(err, DmatError)
        assert isinstance(err, IndexError)

    def test_pickle(self):
        err = pickle.loads(pickle.dumps(IndexingError((3, 1), (3, 3))))
        assert err.index == (3, 1)
        assert err.shape == (3, 3)


class TestOtherErrors:

    def test_detached_is_runtime_error(self):
        assert issubclass(DetachedError, DmatError)
        assert issubclass(DetachedError, RuntimeError)

    def test_panic_is_not_an_exception(self):
        """MatrixPanic escapes ordinary except Exception handlers."""
        assert issubclass(MatrixPanic, BaseException)
        assert not issubclass(MatrixPanic, Exception)

    def test_panic_keeps_cause(self):
        cause = IndexingError((1, 1), (0, 0))
        panic = MatrixPanic("boom", cause)
        assert panic.cause is cause
