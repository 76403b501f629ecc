"""
Error types for dmat.

Recoverable failures derive from :class:`DmatError` and also from the
builtin exception a caller would naturally expect (``ValueError`` for
shape problems, ``IndexError`` for out-of-range coordinates), so both
``except dmat.ShapeError`` and ``except ValueError`` work.

:class:`MatrixPanic` is the exception to that rule: it derives from
``BaseException`` and is raised only by the unchecked ``matrix[r, c]``
operator when the caller's bounds guarantee turned out to be wrong.
"""

from __future__ import annotations

from typing import Optional, Tuple


# Axis names carried by ShapeError
ROWS = "rows"
COLS = "cols"


class DmatError(Exception):
    """Base exception for all recoverable dmat errors."""


class ShapeError(DmatError, ValueError):
    """
    A sequence's length disagrees with the matrix's current dimension.

    Attributes:
        actual: Size that was supplied
        expected: Size the matrix required
        axis: Which dimension mismatched ("rows" or "cols")
    """

    def __init__(self, actual: int, expected: int, axis: str = COLS,
                 message: Optional[str] = None):
        self.actual = actual
        self.expected = expected
        self.axis = axis
        if message is None:
            message = (f"The operation performed expected {expected} {axis} "
                       f"but was given {actual}.")
        super().__init__(message)

    @classmethod
    def rows_error(cls, rows: int, expected_rows: int) -> "ShapeError":
        """Mismatch along the row dimension (e.g. a column of wrong length)."""
        return cls(rows, expected_rows, ROWS)

    @classmethod
    def cols_error(cls, cols: int, expected_cols: int) -> "ShapeError":
        """Mismatch along the column dimension (e.g. a row of wrong length)."""
        return cls(cols, expected_cols, COLS)

    @classmethod
    def from_shapes(cls, shape: Tuple[int, int],
                    expected_shape: Tuple[int, int]) -> "ShapeError":
        """Build from a full (rows, cols) pair, reporting rows first."""
        if shape[0] != expected_shape[0]:
            return cls.rows_error(shape[0], expected_shape[0])
        return cls.cols_error(shape[1], expected_shape[1])

    @classmethod
    def flat_length_error(cls, length: int, cols: int) -> "ShapeError":
        """A flat buffer whose length is not a whole number of rows."""
        return cls(
            length, (length // cols) * cols if cols else 0, COLS,
            f"A flat buffer of length {length} cannot be split into rows "
            f"of {cols} columns.",
        )

    def __reduce__(self):
        return (self.__class__, (self.actual, self.expected, self.axis, str(self)))


class IndexingError(DmatError, IndexError):
    """
    A (row, col) coordinate fell outside the matrix.

    Attributes:
        row, col: Requested coordinate
        nrows, ncols: Shape of the matrix that was indexed
    """

    def __init__(self, index: Tuple[int, int], shape: Tuple[int, int]):
        self.row, self.col = index
        self.nrows, self.ncols = shape
        super().__init__(self._format())

    @property
    def row_out_of_range(self) -> bool:
        return not 0 <= self.row < self.nrows

    @property
    def col_out_of_range(self) -> bool:
        return not 0 <= self.col < self.ncols

    @property
    def index(self) -> Tuple[int, int]:
        return (self.row, self.col)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.nrows, self.ncols)

    def _format(self) -> str:
        lines = []
        if self.row_out_of_range:
            lines.append(
                f"Attempted indexing row {self.row}. "
                f"The row index should be in [0, {self.nrows})"
            )
        if self.col_out_of_range:
            lines.append(
                f"Attempted indexing column {self.col}. "
                f"The column index should be in [0, {self.ncols})"
            )
        return "\n".join(lines)

    def __reduce__(self):
        return (self.__class__, (self.index, self.shape))


class DetachedError(DmatError, RuntimeError):
    """
    The storage this object referred to has been moved elsewhere.

    Raised when a matrix is used after into_raw_parts()/into_boxed(),
    or when a RawParts handle is attached twice.
    """


class MatrixPanic(BaseException):
    """
    Unrecoverable indexing failure from the unchecked operator.

    Derives from BaseException so that generic ``except Exception``
    handlers do not swallow it. The originating IndexingError is
    available as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[IndexingError] = None):
        super().__init__(message)
        self.cause = cause


__all__ = [
    "DmatError",
    "ShapeError",
    "IndexingError",
    "DetachedError",
    "MatrixPanic",
]
