"""
Growable Buffer

Contiguous, growable sequence of elements: a length, a reserved capacity
and one ctypes block. This is the storage every DynamicMatrix owns.

Cost Model:
    - extend()/append(): amortized O(n) in the number of new elements;
      capacity grows geometrically (config.memory.growth_factor)
    - insert(): O(len - index), everything after the slot shifts right
    - reallocation moves elements with memmove (numeric) or element
      assignment (object) and invalidates previously exported pointers

Staging:
    Incoming values are converted to the element type in a scratch block
    before the buffer is touched. A value the dtype cannot represent
    raises TypeError (wrong kind) or OverflowError (integer out of range)
    and leaves the buffer as it was.
"""

import ctypes
import logging
import math
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ._array import Array, allocate_block, block_memoryview
from ._config import config
from ._dtypes import DType, validate_dtype

logger = logging.getLogger("dmat.buffer")

__all__ = ['Buffer']


class Buffer:
    """
    Growable contiguous buffer with C-compatible layout.

    Attributes:
        dtype (DType): Element type
        capacity (int): Reserved slots
        ptr (int): Base address (0 when nothing is allocated)

    Example:
        >>> buf = Buffer('int64')
        >>> buf.extend([1, 2, 3])
        >>> buf.insert(1, 9)
        >>> buf.tolist()
        [1, 9, 2, 3]
    """

    def __init__(
        self,
        dtype: Union[str, DType, None] = None,
        capacity: int = 0,
        align: Optional[int] = None
    ):
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")
        self._dtype = validate_dtype(dtype, config.default_dtype)
        self._align = config.memory.alignment if align is None else align
        self._len = 0
        self._data, self._owner = allocate_block(capacity, self._dtype, self._align)
        self._capacity = capacity

    @classmethod
    def from_parts(cls, data: Any, owner: Any, length: int, dtype: DType) -> 'Buffer':
        """Take over an existing block without copying. Capacity is the block length."""
        buf = cls.__new__(cls)
        buf._dtype = dtype
        buf._align = config.memory.alignment
        buf._data = data
        buf._owner = owner
        buf._capacity = 0 if data is None else len(data)
        if not 0 <= length <= buf._capacity:
            raise ValueError(f"Length {length} outside block capacity {buf._capacity}")
        buf._len = length
        return buf

    @classmethod
    def from_array(cls, array: Array) -> 'Buffer':
        """Take ownership of an Array's block; the Array is consumed."""
        dtype, size = array.dtype, array.size
        data, owner = array._release()
        return cls.from_parts(data, owner, size, dtype)

    def take_parts(self) -> Tuple[Any, Any, int, int]:
        """
        Move the block out.

        Returns:
            (data, owner, length, capacity). The buffer is left empty with
            no allocation.
        """
        parts = (self._data, self._owner, self._len, self._capacity)
        self._data = None
        self._owner = None
        self._len = 0
        self._capacity = 0
        return parts

    def into_array(self) -> Array:
        """Move the live elements out as a fixed-length Array (no copy)."""
        data, owner, length, _ = self.take_parts()
        return Array._adopt(data, owner, length, self._dtype)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def dtype(self) -> DType:
        return self._dtype

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def itemsize(self) -> int:
        return self._dtype.itemsize

    @property
    def ptr(self) -> int:
        if self._data is None:
            return 0
        return ctypes.addressof(self._data)

    def get_pointer(self) -> ctypes.c_void_p:
        """Untyped base pointer; invalidated by any reallocation."""
        if self._data is None:
            return ctypes.c_void_p(0)
        return ctypes.cast(self._data, ctypes.c_void_p)

    def get_typed_pointer(self):
        """Typed base pointer (POINTER(c_double), etc.)."""
        if self._data is None:
            return ctypes.POINTER(self._dtype.ctype)()
        return ctypes.cast(self._data, ctypes.POINTER(self._dtype.ctype))

    def __len__(self) -> int:
        return self._len

    # -------------------------------------------------------------------------
    # Capacity Management
    # -------------------------------------------------------------------------

    def reserve(self, additional: int):
        """Ensure room for ``additional`` more elements, growing geometrically."""
        needed = self._len + additional
        if needed <= self._capacity:
            return
        mem = config.memory
        grown = math.ceil(self._capacity * mem.growth_factor)
        self._reallocate(max(needed, grown, mem.min_capacity))

    def reserve_exact(self, additional: int):
        """Ensure room for ``additional`` more elements without over-allocating."""
        needed = self._len + additional
        if needed > self._capacity:
            self._reallocate(needed)

    def shrink_to_fit(self):
        """Drop unused capacity."""
        if self._capacity > self._len:
            self._reallocate(self._len)

    def _reallocate(self, new_capacity: int):
        data, owner = allocate_block(new_capacity, self._dtype, self._align)
        if self._len:
            if self._dtype.is_numeric:
                ctypes.memmove(data, self._data, self._len * self.itemsize)
            else:
                data[:self._len] = self._data[:self._len]
        logger.debug(
            f"Reallocated {self._dtype.value} buffer: "
            f"capacity {self._capacity} -> {new_capacity} (len={self._len})"
        )
        self._data, self._owner = data, owner
        self._capacity = new_capacity

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _stage(self, values: Sequence) -> Any:
        """Convert values to the element type without touching the buffer."""
        if not self._dtype.is_numeric:
            return list(values)
        checked = [self._dtype.check_value(v) for v in values]
        return (self._dtype.ctype * len(checked))(*checked)

    def extend(self, values: Iterable):
        """Append values at the tail."""
        if not isinstance(values, Sequence):
            values = list(values)
        staged = self._stage(values)
        n = len(staged)
        if n == 0:
            return
        self.reserve(n)
        start = self._len
        if self._dtype.is_numeric:
            isz = self.itemsize
            ctypes.memmove(self.ptr + start * isz, ctypes.addressof(staged), n * isz)
        else:
            self._data[start:start + n] = staged
        self._len += n

    def extend_raw(self, address: int, count: int):
        """
        Append ``count`` elements copied from raw memory at ``address``.

        Trusted path for numeric interop: the caller guarantees the source
        holds ``count`` elements laid out exactly like this dtype.
        """
        if not self._dtype.is_numeric:
            raise TypeError("extend_raw() requires a numeric dtype")
        if count <= 0:
            return
        self.reserve(count)
        isz = self.itemsize
        ctypes.memmove(self.ptr + self._len * isz, address, count * isz)
        self._len += count

    def append(self, value: Any):
        """Append one value at the tail."""
        self.extend([value])

    def insert(self, index: int, value: Any):
        """
        Insert ``value`` before position ``index`` (0 <= index <= len).

        Every element from ``index`` on shifts one slot right.
        """
        if not 0 <= index <= self._len:
            raise IndexError(f"Insert position {index} out of bounds [0, {self._len}]")
        staged = self._stage([value])[0]
        self.reserve(1)
        tail = self._len - index
        if tail:
            if self._dtype.is_numeric:
                isz = self.itemsize
                src = self.ptr + index * isz
                ctypes.memmove(src + isz, src, tail * isz)
            else:
                self._data[index + 1:self._len + 1] = self._data[index:self._len]
        self._data[index] = staged
        self._len += 1

    def clear(self):
        """Remove all elements, keeping capacity."""
        if not self._dtype.is_numeric and self._len:
            # drop references held by the object block
            self._data[:self._len] = [None] * self._len
        self._len = 0

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _normalize_index(self, idx: int) -> int:
        if idx < 0:
            idx += self._len
        if idx < 0 or idx >= self._len:
            raise IndexError(f"Index {idx} out of bounds [0, {self._len})")
        return idx

    def __getitem__(self, idx: Union[int, slice]):
        if isinstance(idx, slice):
            start, stop, step = idx.indices(self._len)
            return [self._data[i] for i in range(start, stop, step)]
        return self._data[self._normalize_index(idx)]

    def __setitem__(self, idx: int, value: Any):
        self._data[self._normalize_index(idx)] = self._dtype.check_value(value)

    def __iter__(self) -> Iterator:
        for i in range(self._len):
            yield self._data[i]

    def tolist(self) -> List:
        if self._data is None:
            return []
        return self._data[:self._len]

    def as_memoryview(self) -> memoryview:
        """Writable memoryview over the live elements (numeric dtypes only)."""
        if not self._dtype.is_numeric:
            raise TypeError("object buffers do not export a typed memoryview")
        return block_memoryview(self._data, self._len, self._dtype)

    def copy(self) -> 'Buffer':
        """Deep copy with capacity trimmed to length."""
        new = Buffer(self._dtype, self._len, self._align)
        if self._len:
            if self._dtype.is_numeric:
                ctypes.memmove(new._data, self._data, self._len * self.itemsize)
            else:
                new._data[:self._len] = self._data[:self._len]
        new._len = self._len
        return new

    def __repr__(self) -> str:
        return (f"Buffer(len={self._len}, capacity={self._capacity}, "
                f"dtype={self._dtype.value})")
