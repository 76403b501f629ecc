"""Dynamic Row-Major Matrix.

A two-dimensional matrix stored as one growable, row-major buffer plus a
column count. The row count is derived (``len(buffer) // cols``), never
stored, so the buffer length is always a whole number of rows.

Cost Model:
    - push_row(): O(cols) amortized tail append
    - push_col(): O(rows x cols); one element is inserted after every row
      and everything behind it shifts

Storage Layout:
    element (r, c) lives at flat offset ``r * cols + c``

    cols = 3
    buffer: [a00 a01 a02 | a10 a11 a12 | a20 a21 a22]

Access:
    - get()/get_mut()/set(): checked, raise IndexingError
    - mat[r, c]: unchecked operator for call sites that already know the
      bounds; a violation escalates to MatrixPanic

Interop:
    - as_ptr()/as_mut_ptr()/as_typed_ptr(): ctypes pointers, non-owning
    - as_slice()/as_mut_slice(): SliceView, non-owning
    - into_raw_parts()/from_raw_parts(): detach/attach a RawParts handle
    - into_boxed()/from_boxed(): detach/attach a fixed-length Array
    - to_numpy()/from_numpy(): numpy exchange

Example:
    >>> mat = DynamicMatrix.with_capacity(3, 2, dtype='int64')
    >>> mat.push_row([1, 2])
    >>> mat.push_row([4, 5])
    >>> mat.push_row([7, 8])
    >>> mat.push_col([3, 6, 9])
    >>> mat.shape()
    (3, 3)
    >>> mat.get(1, 2)
    6
"""

import ctypes
import logging
import operator
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ._array import Array, object_ndarray
from ._buffer import Buffer
from ._dtypes import DType, validate_dtype
from ._errors import DetachedError, IndexingError, MatrixPanic, ShapeError
from ._ownership import OwnershipTracker, RawParts
from ._view import SliceView

logger = logging.getLogger("dmat.matrix")

__all__ = [
    'DynamicMatrix',
    'ElementRef',
    'empty',
    'with_capacity',
    'from_flat',
    'from_rows',
    'from_numpy',
]

DTypeLike = Union[str, DType, type, None]


def _as_sequence(values: Iterable) -> Sequence:
    if isinstance(values, Sequence):
        return values
    return list(values)


def _check_dim(value: int, name: str) -> int:
    value = operator.index(value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


# =============================================================================
# Element Reference
# =============================================================================

class ElementRef:
    """
    Writable handle to one matrix slot, returned by get_mut().

    The handle is bound to a flat offset. It is only meaningful while the
    matrix keeps its shape; a column append moves elements and leaves the
    handle pointing at a different element.
    """

    __slots__ = ('_matrix', '_offset', 'index')

    def __init__(self, matrix: 'DynamicMatrix', offset: int, index: Tuple[int, int]):
        self._matrix = matrix
        self._offset = offset
        self.index = index

    @property
    def value(self) -> Any:
        self._matrix._ownership.ensure_valid()
        return self._matrix._buffer[self._offset]

    @value.setter
    def value(self, new_value: Any):
        self._matrix._ownership.ensure_valid()
        self._matrix._buffer[self._offset] = new_value

    def __repr__(self) -> str:
        return f"ElementRef(index={self.index})"


# =============================================================================
# DynamicMatrix
# =============================================================================

class DynamicMatrix:
    """
    Growable row-major matrix. Adding a row is cheap, adding a column is
    expensive.

    Attributes:
        dtype (DType): Element type
        is_detached (bool): True after into_raw_parts()/into_boxed()

    Invariants:
        - len(buffer) is a multiple of cols() whenever cols() > 0
        - cols() never decreases
        - a zero-column matrix has zero rows and an empty buffer
    """

    def __init__(self, cols: int, dtype: DTypeLike = None):
        """
        Create an empty matrix with zero rows and ``cols`` columns.

        Args:
            cols: Column count
            dtype: Element type (defaults to config.default_dtype)
        """
        self._init(Buffer(dtype), _check_dim(cols, "cols"))

    def _init(self, buffer: Buffer, cols: int):
        self._buffer = buffer
        self._cols = cols
        self._ownership = OwnershipTracker()

    @classmethod
    def _from_buffer(cls, buffer: Buffer, cols: int) -> 'DynamicMatrix':
        mat = cls.__new__(cls)
        mat._init(buffer, cols)
        return mat

    @staticmethod
    def _check_flat_length(length: int, cols: int):
        if cols == 0:
            if length:
                raise ShapeError.flat_length_error(length, cols)
        elif length % cols:
            raise ShapeError.flat_length_error(length, cols)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def with_capacity(cls, rows: int, cols: int, dtype: DTypeLike = None) -> 'DynamicMatrix':
        """
        Create an empty matrix with room for ``rows`` rows.

        No reallocation happens until more than ``rows * cols`` elements
        have been appended.
        """
        rows = _check_dim(rows, "rows")
        cols = _check_dim(cols, "cols")
        return cls._from_buffer(Buffer(dtype, capacity=rows * cols), cols)

    @classmethod
    def from_flat(cls, values: Iterable, cols: int, dtype: DTypeLike = None) -> 'DynamicMatrix':
        """
        Create a matrix from row-major flat values.

        Raises:
            ShapeError: If len(values) is not a multiple of cols.
        """
        cols = _check_dim(cols, "cols")
        values = _as_sequence(values)
        cls._check_flat_length(len(values), cols)
        buffer = Buffer(dtype, capacity=len(values))
        buffer.extend(values)
        return cls._from_buffer(buffer, cols)

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable], dtype: DTypeLike = None) -> 'DynamicMatrix':
        """
        Create a matrix from a nested list, e.g. ``[[1, 2], [3, 4]]``.

        The first row fixes the column count; an empty list gives a
        zero-column matrix.

        Raises:
            ShapeError: If the rows are ragged.
        """
        rows = [_as_sequence(r) for r in rows]
        cols = len(rows[0]) if rows else 0
        flat: List[Any] = []
        for row in rows:
            if len(row) != cols:
                raise ShapeError.cols_error(len(row), cols)
            flat.extend(row)
        return cls.from_flat(flat, cols, dtype)

    @classmethod
    def from_numpy(cls, array: Any, dtype: DTypeLike = None) -> 'DynamicMatrix':
        """
        Copy a 2-D numpy array (or anything np.asarray accepts) into a new
        matrix.

        Args:
            array: 2-D array-like
            dtype: Target element type (defaults to the array's dtype)

        Raises:
            ShapeError: If the array has rows but no columns; a zero-column
                matrix always has zero rows.
        """
        array = np.asarray(array)
        if array.ndim != 2:
            raise ValueError(f"from_numpy() expects a 2-D array, got {array.ndim}-D")
        nrows, ncols = array.shape
        if ncols == 0 and nrows:
            raise ShapeError.rows_error(nrows, 0)
        target = DType.from_numpy(array.dtype) if dtype is None else validate_dtype(dtype)
        buffer = Buffer(target, capacity=array.size)
        if target.is_numeric:
            contiguous = np.ascontiguousarray(array, dtype=target.numpy_dtype)
            buffer.extend_raw(contiguous.ctypes.data, contiguous.size)
        else:
            buffer.extend(array.ravel().tolist())
        return cls._from_buffer(buffer, ncols)

    @classmethod
    def from_boxed(cls, array: Array, cols: int) -> 'DynamicMatrix':
        """
        Attach a fixed-length Array as the matrix buffer, without copying.

        The Array is consumed: it raises DetachedError afterwards.

        Raises:
            ShapeError: If len(array) is not a multiple of cols.
        """
        if not isinstance(array, Array):
            raise TypeError(f"from_boxed() expects an Array, got {type(array).__name__}")
        cols = _check_dim(cols, "cols")
        cls._check_flat_length(len(array), cols)
        buffer = Buffer.from_array(array)
        logger.debug(f"Attached boxed {buffer.dtype.value} buffer of {len(buffer)} elements")
        return cls._from_buffer(buffer, cols)

    @classmethod
    def from_raw_parts(cls, parts: RawParts) -> 'DynamicMatrix':
        """
        Attach a RawParts handle produced by into_raw_parts().

        The handle is validated before it is consumed.

        Raises:
            DetachedError: If the handle was already attached.
            ShapeError: If length is not a multiple of cols.
            ValueError: If length exceeds capacity or the pointer does
                not match the block carried by the handle.
        """
        if not isinstance(parts, RawParts):
            raise TypeError(f"from_raw_parts() expects RawParts, got {type(parts).__name__}")
        if parts.is_claimed:
            raise DetachedError("RawParts were already attached to a matrix")
        cols = _check_dim(parts.cols, "cols")
        if parts.length > parts.capacity:
            raise ValueError(f"length {parts.length} exceeds capacity {parts.capacity}")
        cls._check_flat_length(parts.length, cols)
        block_ptr = 0 if parts._data is None else ctypes.addressof(parts._data)
        if parts.ptr != block_ptr:
            raise ValueError(f"RawParts pointer {parts.ptr:#x} does not match its block")
        if parts._data is not None and len(parts._data) != parts.capacity:
            raise ValueError(f"capacity {parts.capacity} does not match its block")

        data, owner = parts.claim()
        buffer = Buffer.from_parts(data, owner, parts.length, parts.dtype)
        logger.debug(
            f"Attached raw parts: ptr={parts.ptr:#x} length={parts.length} "
            f"capacity={parts.capacity} cols={cols}"
        )
        return cls._from_buffer(buffer, cols)

    # -------------------------------------------------------------------------
    # Shape Queries
    # -------------------------------------------------------------------------

    def rows(self) -> int:
        """Number of rows (derived from the buffer length)."""
        self._ownership.ensure_valid()
        if self._cols == 0:
            return 0
        return len(self._buffer) // self._cols

    def cols(self) -> int:
        """Number of columns."""
        self._ownership.ensure_valid()
        return self._cols

    def shape(self) -> Tuple[int, int]:
        """(rows, cols)"""
        return (self.rows(), self.cols())

    def capacity(self) -> int:
        """Reserved element slots, at least len(self)."""
        self._ownership.ensure_valid()
        return self._buffer.capacity

    def __len__(self) -> int:
        """Number of elements, rows() * cols()."""
        self._ownership.ensure_valid()
        return len(self._buffer)

    @property
    def dtype(self) -> DType:
        return self._buffer.dtype

    @property
    def is_detached(self) -> bool:
        return self._ownership.is_detached

    def reserve(self, additional_rows: int):
        """Make room for ``additional_rows`` more rows."""
        self._ownership.ensure_valid()
        self._buffer.reserve(_check_dim(additional_rows, "additional_rows") * self._cols)

    def shrink_to_fit(self):
        """Drop unused capacity. Invalidates exported pointers."""
        self._ownership.ensure_valid()
        self._buffer.shrink_to_fit()

    # -------------------------------------------------------------------------
    # Structural Mutation
    # -------------------------------------------------------------------------

    def push_row(self, row: Iterable):
        """
        Append a row at the bottom.

        Raises:
            ShapeError: If len(row) != cols(). The matrix is unchanged.
        """
        self._ownership.ensure_valid()
        row = _as_sequence(row)
        if len(row) != self._cols:
            raise ShapeError.cols_error(len(row), self._cols)
        self._buffer.extend(row)

    def push_col(self, col: Iterable):
        """
        Append a column on the right.

        Element ``i`` of ``col`` is inserted after the last element of row
        ``i``, row by row, then cols() grows by one. On a zero-row matrix
        only an empty column fits; it still widens the matrix.

        Raises:
            ShapeError: If len(col) != rows(). The matrix is unchanged.
        """
        self._ownership.ensure_valid()
        col = _as_sequence(col)
        nrows = self.rows()
        if len(col) != nrows:
            raise ShapeError.rows_error(len(col), nrows)

        staged = self._buffer._stage(col)
        self._buffer.reserve_exact(nrows)
        c = self._cols
        for i in range(nrows):
            # end of row i, after the i insertions made above it
            self._buffer.insert((i + 1) * c + i, staged[i])
        self._cols = c + 1
        logger.debug(f"Appended column: shape ({nrows}, {c}) -> ({nrows}, {c + 1})")

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _offset(self, row: int, col: int) -> int:
        """Flat offset of (row, col); the single bounds check for all access."""
        self._ownership.ensure_valid()
        row = operator.index(row)
        col = operator.index(col)
        nrows = self.rows()
        if not (0 <= row < nrows and 0 <= col < self._cols):
            raise IndexingError((row, col), (nrows, self._cols))
        return row * self._cols + col

    def get(self, row: int, col: int) -> Any:
        """
        Element at (row, col).

        Raises:
            IndexingError: If either coordinate is out of range.
        """
        return self._buffer[self._offset(row, col)]

    def get_mut(self, row: int, col: int) -> ElementRef:
        """
        Writable handle to the element at (row, col).

        Raises:
            IndexingError: If either coordinate is out of range.
        """
        return ElementRef(self, self._offset(row, col), (row, col))

    def set(self, row: int, col: int, value: Any):
        """
        Overwrite the element at (row, col).

        Raises:
            IndexingError: If either coordinate is out of range.
        """
        self._buffer[self._offset(row, col)] = value

    @staticmethod
    def _split_key(key) -> Tuple[int, int]:
        if not (isinstance(key, tuple) and len(key) == 2):
            raise TypeError("matrix indices must be a (row, col) pair")
        return key

    def __getitem__(self, key) -> Any:
        row, col = self._split_key(key)
        try:
            return self.get(row, col)
        except IndexingError as e:
            raise MatrixPanic(f"index out of bounds: {e}", e) from e

    def __setitem__(self, key, value: Any):
        row, col = self._split_key(key)
        try:
            self.set(row, col, value)
        except IndexingError as e:
            raise MatrixPanic(f"index out of bounds: {e}", e) from e

    def row(self, index: int) -> List:
        """Copy of one row as a list."""
        nrows = self.rows()
        index = operator.index(index)
        if not 0 <= index < nrows:
            raise IndexingError((index, 0), (nrows, self._cols))
        start = index * self._cols
        return self._buffer[start:start + self._cols]

    def iter_rows(self) -> Iterator[List]:
        """Yield each row as a list."""
        for r in range(self.rows()):
            yield self.row(r)

    def tolist(self) -> List[List]:
        """Nested list, one inner list per row."""
        return list(self.iter_rows())

    # -------------------------------------------------------------------------
    # Raw Interop
    # -------------------------------------------------------------------------

    def as_ptr(self) -> ctypes.c_void_p:
        """
        Base address of the buffer, for read-only use by external code.

        Non-owning: invalid after the next reallocation or detach.
        """
        self._ownership.ensure_valid()
        return self._buffer.get_pointer()

    def as_mut_ptr(self) -> ctypes.c_void_p:
        """Base address of the buffer, for external code that writes elements in place."""
        self._ownership.ensure_valid()
        return self._buffer.get_pointer()

    def as_typed_ptr(self):
        """Typed base pointer (POINTER(c_double), etc.)."""
        self._ownership.ensure_valid()
        return self._buffer.get_typed_pointer()

    def as_slice(self) -> SliceView:
        """Read-only flat view of all elements."""
        self._ownership.ensure_valid()
        return SliceView(self._buffer, self._ownership, readonly=True)

    def as_mut_slice(self) -> SliceView:
        """Writable flat view of all elements."""
        self._ownership.ensure_valid()
        return SliceView(self._buffer, self._ownership, readonly=False)

    def into_raw_parts(self) -> RawParts:
        """
        Move the buffer out as a RawParts handle.

        The matrix is consumed: any further use raises DetachedError.
        """
        self._ownership.ensure_valid()
        cols, dtype = self._cols, self._buffer.dtype
        data, owner, length, capacity = self._buffer.take_parts()
        self._ownership.detach("into_raw_parts")
        ptr = 0 if data is None else ctypes.addressof(data)
        logger.debug(
            f"Detached raw parts: ptr={ptr:#x} length={length} "
            f"capacity={capacity} cols={cols}"
        )
        return RawParts(ptr, length, capacity, cols, dtype, data, owner)

    def into_boxed(self) -> Tuple[Array, int]:
        """
        Move the buffer out as a fixed-length Array.

        Returns:
            (array, cols). The matrix is consumed.
        """
        self._ownership.ensure_valid()
        cols = self._cols
        array = self._buffer.into_array()
        self._ownership.detach("into_boxed")
        logger.debug(f"Detached boxed {array.dtype.value} buffer of {len(array)} elements")
        return array, cols

    def to_numpy(self, copy: bool = True) -> np.ndarray:
        """
        (rows, cols) numpy array.

        Args:
            copy: If False, return a zero-copy writable view of the buffer
                  (numeric dtypes only); it is invalidated by reallocation.
        """
        shape = self.shape()
        if not self.dtype.is_numeric:
            return object_ndarray(self._buffer.tolist()).reshape(shape)
        flat = self.as_mut_slice().to_numpy()
        if copy:
            flat = flat.copy()
        return flat.reshape(shape)

    # -------------------------------------------------------------------------
    # Copy / Comparison / Representation
    # -------------------------------------------------------------------------

    def copy(self) -> 'DynamicMatrix':
        """Deep copy with its own buffer."""
        self._ownership.ensure_valid()
        return self._from_buffer(self._buffer.copy(), self._cols)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DynamicMatrix):
            return NotImplemented
        if self.is_detached or other.is_detached:
            return False
        return (self.dtype == other.dtype
                and self.shape() == other.shape()
                and self._buffer.tolist() == other._buffer.tolist())

    __hash__ = None

    def __repr__(self) -> str:
        if self.is_detached:
            return "DynamicMatrix(<detached>)"
        nrows = self.rows()
        if nrows <= 6:
            body = str(self.tolist())
        else:
            head = [self.row(r) for r in range(3)]
            tail = [self.row(r) for r in range(nrows - 3, nrows)]
            body = str(head + ['...'] + tail)
        return f"DynamicMatrix({body}, shape={self.shape()}, dtype={self.dtype.value})"


# =============================================================================
# Factory Functions
# =============================================================================

def empty(cols: int, dtype: DTypeLike = None) -> DynamicMatrix:
    """Zero-row matrix with ``cols`` columns."""
    return DynamicMatrix(cols, dtype)


def with_capacity(rows: int, cols: int, dtype: DTypeLike = None) -> DynamicMatrix:
    """Zero-row matrix with room reserved for ``rows`` rows."""
    return DynamicMatrix.with_capacity(rows, cols, dtype)


def from_flat(values: Iterable, cols: int, dtype: DTypeLike = None) -> DynamicMatrix:
    """Matrix from row-major flat values."""
    return DynamicMatrix.from_flat(values, cols, dtype)


def from_rows(rows: Iterable[Iterable], dtype: DTypeLike = None) -> DynamicMatrix:
    """Matrix from a nested list."""
    return DynamicMatrix.from_rows(rows, dtype)


def from_numpy(array: Any, dtype: Optional[DTypeLike] = None) -> DynamicMatrix:
    """Matrix copied from a 2-D numpy array."""
    return DynamicMatrix.from_numpy(array, dtype)
