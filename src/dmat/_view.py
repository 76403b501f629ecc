"""
Slice Views

Non-owning, bounds-known views over a matrix's flat buffer. A view reads
through to the live buffer, so it always sees the current elements, and
refuses access once the owning matrix has been detached.

Exported memoryviews and numpy arrays are zero-copy and are NOT tracked:
they are invalidated by any reallocation (a growing push or
shrink_to_fit) of the underlying buffer.
"""

from typing import Any, Iterator, List, Union

import numpy as np

from ._array import object_ndarray
from ._buffer import Buffer
from ._dtypes import DType
from ._ownership import OwnershipTracker

__all__ = ['SliceView']


class SliceView:
    """
    Flat view of all elements of a matrix, in row-major order.

    Attributes:
        readonly (bool): True for views from as_slice()
        dtype (DType): Element type

    Example:
        >>> view = mat.as_mut_slice()
        >>> view[0] = 10
        >>> arr = view.to_numpy()   # zero-copy, writable
    """

    def __init__(self, buffer: Buffer, tracker: OwnershipTracker, readonly: bool = True):
        self._buffer = buffer
        self._tracker = tracker
        self._readonly = readonly

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def dtype(self) -> DType:
        return self._buffer.dtype

    def __len__(self) -> int:
        self._tracker.ensure_valid()
        return len(self._buffer)

    def __getitem__(self, idx: Union[int, slice]) -> Any:
        self._tracker.ensure_valid()
        return self._buffer[idx]

    def __setitem__(self, idx: int, value: Any):
        if self._readonly:
            raise TypeError("cannot assign through a read-only slice view")
        self._tracker.ensure_valid()
        self._buffer[idx] = value

    def __iter__(self) -> Iterator:
        self._tracker.ensure_valid()
        return iter(self._buffer)

    def __eq__(self, other) -> bool:
        if isinstance(other, SliceView):
            other = other.tolist()
        if isinstance(other, (list, tuple)):
            return self.tolist() == list(other)
        return NotImplemented

    __hash__ = None

    def tolist(self) -> List:
        self._tracker.ensure_valid()
        return self._buffer.tolist()

    def as_memoryview(self) -> memoryview:
        """Zero-copy memoryview (numeric dtypes only), read-only if the view is."""
        self._tracker.ensure_valid()
        mv = self._buffer.as_memoryview()
        return mv.toreadonly() if self._readonly else mv

    def to_numpy(self) -> np.ndarray:
        """
        1-D numpy array over the elements.

        Zero-copy for numeric dtypes (read-only if the view is); a copy
        for object dtype.
        """
        if not self.dtype.is_numeric:
            return object_ndarray(self.tolist())
        if len(self) == 0:
            return np.empty(0, dtype=self.dtype.numpy_dtype)
        return np.frombuffer(self.as_memoryview(), dtype=self.dtype.numpy_dtype)

    def __repr__(self) -> str:
        kind = "readonly" if self._readonly else "mutable"
        if self._tracker.is_detached:
            return f"SliceView(<detached>, {kind})"
        return f"SliceView({self.tolist()}, {kind}, dtype={self.dtype.value})"
