"""
Fixed-Length Array Container

ctypes-backed contiguous block whose length never changes after
allocation. It is the "boxed" form a DynamicMatrix detaches into and
attaches from: the block moves between owners without copying.

Numeric blocks are aligned (64 bytes by default, see dmat.config) so the
address can be handed straight to SIMD-friendly C code.
"""

import ctypes
from typing import Any, Iterator, List, Optional, Tuple, Union

import numpy as np

from ._config import config
from ._dtypes import DType, validate_dtype
from ._errors import DetachedError

__all__ = ['Array', 'allocate_block', 'block_memoryview', 'empty', 'zeros', 'from_list']


# =============================================================================
# Block Allocation
# =============================================================================

def allocate_block(capacity: int, dtype: DType, align: Optional[int] = None) -> Tuple[Any, Any]:
    """
    Allocate storage for ``capacity`` elements of ``dtype``.

    Returns:
        (data, owner): ``data`` is a ctypes array of exactly ``capacity``
        elements, ``owner`` is the object that must stay referenced for
        ``data`` to remain valid. Both are None when capacity is 0.
    """
    if capacity < 0:
        raise ValueError(f"Capacity must be non-negative, got {capacity}")
    if capacity == 0:
        return None, None

    if not dtype.is_numeric:
        # py_object arrays keep their own references; no raw alignment
        data = (ctypes.py_object * capacity)()
        return data, data

    if align is None:
        align = config.memory.alignment

    nbytes = capacity * dtype.itemsize
    # We allocate extra space for alignment
    raw = (ctypes.c_uint8 * (nbytes + align))()
    addr = ctypes.addressof(raw)
    aligned_addr = (addr + align - 1) & ~(align - 1)

    data = (dtype.ctype * capacity).from_address(aligned_addr)
    return data, raw


def block_memoryview(data: Any, count: int, dtype: DType) -> memoryview:
    """
    Writable memoryview over the first ``count`` elements of a numeric block.

    ctypes exports explicit-endian formats (``<q``) that memoryview cannot
    index; re-viewing through the native numpy dtype gives a plain format.
    """
    if data is None or count == 0:
        return memoryview(bytearray()).cast(dtype.format_code)
    return memoryview(np.ctypeslib.as_array(data)[:count].view(dtype.numpy_dtype))


def object_ndarray(values: List[Any]) -> np.ndarray:
    """1-D object ndarray holding ``values`` as-is (no nesting inference)."""
    out = np.empty(len(values), dtype=object)
    for i, v in enumerate(values):
        out[i] = v
    return out


# =============================================================================
# Array Class
# =============================================================================

class Array:
    """
    Fixed-length contiguous array with C-compatible memory layout.

    Features:
    - Memory-aligned allocation for numeric dtypes
    - Zero-copy ctypes pointer access
    - memoryview / numpy export
    - Ownership transfer: an Array handed to DynamicMatrix.from_boxed()
      is consumed and raises DetachedError afterwards

    Attributes:
        dtype (DType): Element type
        size (int): Number of elements
        nbytes (int): Total bytes
        ptr (int): C pointer address (read-only)

    Example:
        >>> arr = Array.zeros(6, dtype='float32')
        >>> arr[0] = 3.5
        >>> ptr = arr.get_pointer()  # For C API calls
        >>> view = arr.as_memoryview()
    """

    def __init__(
        self,
        size: int,
        dtype: Union[str, DType, None] = None,
        align: Optional[int] = None
    ):
        """
        Allocate array.

        Numeric blocks start zeroed; object blocks start filled with None.

        Args:
            size: Number of elements
            dtype: Element type (defaults to config.default_dtype)
            align: Memory alignment in bytes (defaults to config.memory.alignment)
        """
        if size < 0:
            raise ValueError(f"Array size must be non-negative, got {size}")

        self._dtype = validate_dtype(dtype, config.default_dtype)
        self._size = size
        self._moved = False
        self._data, self._owner = allocate_block(size, self._dtype, align)

        if self._data is not None and not self._dtype.is_numeric:
            for i in range(size):
                self._data[i] = None

    @classmethod
    def _adopt(cls, data: Any, owner: Any, size: int, dtype: DType) -> 'Array':
        """Wrap an existing block without copying. ``data`` may be longer than size."""
        arr = cls.__new__(cls)
        arr._dtype = dtype
        arr._size = size
        arr._moved = False
        arr._data = data
        arr._owner = owner
        return arr

    def _release(self) -> Tuple[Any, Any]:
        """Hand the block to a new owner; this Array becomes unusable."""
        self._check_alive()
        data, owner = self._data, self._owner
        self._data = None
        self._owner = None
        self._moved = True
        return data, owner

    def _check_alive(self):
        if self._moved:
            raise DetachedError("Array storage was moved into another owner")

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of elements."""
        return self._size

    @property
    def dtype(self) -> DType:
        """Element type."""
        return self._dtype

    @property
    def itemsize(self) -> int:
        """Bytes per element."""
        return self._dtype.itemsize

    @property
    def nbytes(self) -> int:
        """Total bytes."""
        return self._size * self._dtype.itemsize

    @property
    def is_moved(self) -> bool:
        """True once the storage has been handed to another owner."""
        return self._moved

    @property
    def ptr(self) -> int:
        """C pointer address (read-only)."""
        self._check_alive()
        if self._data is None:
            return 0
        return ctypes.addressof(self._data)

    def get_pointer(self) -> ctypes.c_void_p:
        """Get untyped ctypes pointer for C API calls."""
        self._check_alive()
        if self._data is None:
            return ctypes.c_void_p(0)
        return ctypes.cast(self._data, ctypes.c_void_p)

    def get_typed_pointer(self):
        """Get typed ctypes pointer (POINTER(c_float), etc.)."""
        self._check_alive()
        if self._data is None:
            return ctypes.POINTER(self._dtype.ctype)()
        return ctypes.cast(self._data, ctypes.POINTER(self._dtype.ctype))

    # -------------------------------------------------------------------------
    # Initialization Methods
    # -------------------------------------------------------------------------

    @classmethod
    def zeros(cls, size: int, dtype: Union[str, DType, None] = None,
              align: Optional[int] = None) -> 'Array':
        """Create zero-initialized array (None-filled for object dtype)."""
        arr = cls(size, dtype, align)
        if arr._data is not None and arr._dtype.is_numeric:
            ctypes.memset(arr.get_pointer(), 0, arr.nbytes)
        return arr

    @classmethod
    def from_list(cls, data: List, dtype: Union[str, DType, None] = None,
                  align: Optional[int] = None) -> 'Array':
        """Create array from Python list."""
        arr = cls(len(data), dtype, align)
        for i, val in enumerate(data):
            arr._data[i] = arr._dtype.check_value(val)
        return arr

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _normalize_index(self, idx: int) -> int:
        if idx < 0:
            idx += self._size
        if idx < 0 or idx >= self._size:
            raise IndexError(f"Index {idx} out of bounds [0, {self._size})")
        return idx

    def __getitem__(self, idx: Union[int, slice]):
        """Get element(s) by index."""
        self._check_alive()
        if isinstance(idx, slice):
            start, stop, step = idx.indices(self._size)
            return [self._data[i] for i in range(start, stop, step)]
        return self._data[self._normalize_index(idx)]

    def __setitem__(self, idx: Union[int, slice], value):
        """Set element(s) by index."""
        self._check_alive()
        if isinstance(idx, slice):
            start, stop, step = idx.indices(self._size)
            indices = range(start, stop, step)
            if hasattr(value, '__iter__') and not isinstance(value, (str, bytes)):
                checked = [self._dtype.check_value(v) for v in value]
                for i, v in zip(indices, checked):
                    self._data[i] = v
            else:
                value = self._dtype.check_value(value)
                for i in indices:
                    self._data[i] = value
        else:
            self._data[self._normalize_index(idx)] = self._dtype.check_value(value)

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator:
        self._check_alive()
        for i in range(self._size):
            yield self._data[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self._dtype == other._dtype and self.tolist() == other.tolist()

    __hash__ = None

    # -------------------------------------------------------------------------
    # Buffer Export
    # -------------------------------------------------------------------------

    def as_memoryview(self) -> memoryview:
        """Writable memoryview of the elements (numeric dtypes only)."""
        self._check_alive()
        if not self._dtype.is_numeric:
            raise TypeError("object arrays do not export a typed memoryview")
        return block_memoryview(self._data, self._size, self._dtype)

    def tobytes(self) -> bytes:
        """Convert to bytes (numeric dtypes only)."""
        return self.as_memoryview().tobytes()

    def tolist(self) -> List:
        """Convert to Python list."""
        self._check_alive()
        if self._data is None:
            return []
        return self._data[:self._size]

    def to_numpy(self) -> np.ndarray:
        """Copy into a 1-D numpy array."""
        if not self._dtype.is_numeric:
            return object_ndarray(self.tolist())
        return np.frombuffer(self.tobytes(), dtype=self._dtype.numpy_dtype).copy()

    # -------------------------------------------------------------------------
    # Copy Operations
    # -------------------------------------------------------------------------

    def copy(self) -> 'Array':
        """Create a deep copy (element references are shared for object dtype)."""
        self._check_alive()
        new = Array(self._size, self._dtype)
        if self._data is None:
            return new
        if self._dtype.is_numeric:
            ctypes.memmove(new.get_pointer(), self.get_pointer(), self.nbytes)
        else:
            new._data[:self._size] = self._data[:self._size]
        return new

    def fill(self, value):
        """Fill array with a constant value."""
        self._check_alive()
        value = self._dtype.check_value(value)
        for i in range(self._size):
            self._data[i] = value

    # -------------------------------------------------------------------------
    # Representation
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        if self._moved:
            return f"Array(<moved>, dtype={self._dtype.value})"
        if self._size <= 6:
            data_str = str(self.tolist())
        else:
            values = self.tolist()
            data_str = str(values[:3] + ['...'] + values[-3:])
        return f"Array({data_str}, dtype={self._dtype.value})"


# =============================================================================
# Factory Functions
# =============================================================================

def empty(size: int, dtype: Union[str, DType, None] = None, align: Optional[int] = None) -> Array:
    """Create array (zeroed, or None-filled for object dtype)."""
    return Array(size, dtype, align)


def zeros(size: int, dtype: Union[str, DType, None] = None, align: Optional[int] = None) -> Array:
    """Create zero-initialized array."""
    return Array.zeros(size, dtype, align)


def from_list(data: List, dtype: Union[str, DType, None] = None, align: Optional[int] = None) -> Array:
    """Create array from Python list."""
    return Array.from_list(data, dtype, align)
