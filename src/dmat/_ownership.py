"""Ownership Tracking and Detached Storage Handles.

A DynamicMatrix exclusively owns its buffer. The interop gateway can move
that buffer out (into_raw_parts, into_boxed) or adopt one (from_raw_parts,
from_boxed). At no point do two live objects own the same block.

Key Concepts:
    - OwnershipTracker: records whether a matrix still owns its storage.
      Once ownership moves out, every further operation raises
      DetachedError instead of touching freed or shared memory.
    - RawParts: the detached form of a buffer. It carries the pointer,
      length, capacity and column count callers hand to C code, plus the
      Python object that keeps the memory alive. It can be attached to
      a new matrix exactly once.

Safety Model:
    1. OWNED: matrix holds the only reference to its block
    2. DETACHED: matrix gave its block away and refuses all access
    3. Pointers exported while OWNED stay valid only until the next
       reallocation or detach; that is the caller's responsibility.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Tuple

from ._dtypes import DType
from ._errors import DetachedError

__all__ = [
    'Ownership',
    'OwnershipTracker',
    'RawParts',
]


# =============================================================================
# Ownership State
# =============================================================================

class Ownership(Enum):
    """Storage ownership state of a matrix.

    Attributes:
        OWNED: The matrix owns its buffer and may read and mutate it.
        DETACHED: The buffer was moved out; the matrix is an empty shell.
    """
    OWNED = 'owned'
    DETACHED = 'detached'


class OwnershipTracker:
    """Tracks whether a matrix still owns its storage.

    Example:
        >>> tracker = OwnershipTracker()
        >>> tracker.detach("into_raw_parts")
        >>> tracker.ensure_valid()
        Traceback (most recent call last):
        ...
        dmat._errors.DetachedError: ...
    """

    def __init__(self):
        self._state = Ownership.OWNED
        self._detached_by: Optional[str] = None

    @property
    def state(self) -> Ownership:
        return self._state

    @property
    def is_owned(self) -> bool:
        """Check if storage is still owned."""
        return self._state is Ownership.OWNED

    @property
    def is_detached(self) -> bool:
        return self._state is Ownership.DETACHED

    def detach(self, operation: str) -> None:
        """Record that ``operation`` moved the storage out.

        Raises:
            DetachedError: If storage was already moved out.
        """
        self.ensure_valid()
        self._state = Ownership.DETACHED
        self._detached_by = operation

    def ensure_valid(self) -> None:
        """Raise if storage has been moved out.

        Raises:
            DetachedError: If a detach operation already ran.
        """
        if self._state is Ownership.DETACHED:
            raise DetachedError(
                f"Matrix storage was moved out by {self._detached_by}(); "
                f"this matrix can no longer be used."
            )

    def __repr__(self) -> str:
        if self.is_owned:
            return "OwnershipTracker(owned)"
        return f"OwnershipTracker(detached by {self._detached_by})"


# =============================================================================
# Raw Parts Handle
# =============================================================================

@dataclass
class RawParts:
    """Detached buffer in raw form.

    Unpacks as ``ptr, length, capacity, cols = parts``.

    Attributes:
        ptr: Base address of the block (0 if nothing was allocated).
        length: Number of live elements.
        capacity: Number of reserved slots.
        cols: Column count of the matrix the block came from.
        dtype: Element type.

    Memory Model:
        The handle holds the ctypes block, so ``ptr`` stays valid for as
        long as the handle (or the matrix it is attached to) is alive.
        claim() hands the block to exactly one new owner.
    """
    ptr: int
    length: int
    capacity: int
    cols: int
    dtype: DType
    _data: Any = field(default=None, repr=False)
    _owner: Any = field(default=None, repr=False)
    _claimed: bool = field(default=False, repr=False)

    @property
    def is_claimed(self) -> bool:
        return self._claimed

    def claim(self) -> Tuple[Any, Any]:
        """Take the block out of the handle.

        Returns:
            (data, owner) ctypes block and keep-alive object.

        Raises:
            DetachedError: If the handle was already attached to a matrix.
        """
        if self._claimed:
            raise DetachedError("RawParts were already attached to a matrix")
        self._claimed = True
        data, owner = self._data, self._owner
        self._data = None
        self._owner = None
        return data, owner

    def __iter__(self) -> Iterator[int]:
        return iter((self.ptr, self.length, self.capacity, self.cols))
