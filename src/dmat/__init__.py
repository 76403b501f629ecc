"""
dmat - Dynamic Row-Major Matrices

Growable two-dimensional containers with:
- O(cols) amortized row append, O(rows x cols) column append
- Shape-checked mutation and bounds-checked access
- Zero-copy escape to ctypes pointers, memoryviews and numpy
- Explicit ownership transfer (raw parts / boxed Array)

Modules:
- DynamicMatrix: the matrix type
- Array: fixed-length buffer, the boxed form of a matrix
- Buffer: growable buffer every matrix owns
- config: allocation settings

Example:
    >>> import dmat
    >>> mat = dmat.from_rows([[1, 2], [4, 5], [7, 8]], dtype=dmat.int64)
    >>> mat.push_col([3, 6, 9])
    >>> mat.as_slice().tolist()
    [1, 2, 3, 4, 5, 6, 7, 8, 9]
    >>>
    >>> array, cols = mat.into_boxed()   # mat is consumed
    >>> again = dmat.DynamicMatrix.from_boxed(array, cols)
"""

__version__ = '0.1.0'

from ._dtypes import (
    DType,
    validate_dtype,
    float32,
    float64,
    int32,
    int64,
    uint8,
    uint32,
    uint64,
    bool_,
    object_,
)
from ._errors import (
    DmatError,
    ShapeError,
    IndexingError,
    DetachedError,
    MatrixPanic,
)
from ._config import MemoryConfig, DmatConfig, config, get_config
from ._array import Array
from ._buffer import Buffer
from ._ownership import Ownership, OwnershipTracker, RawParts
from ._view import SliceView
from ._matrix import (
    DynamicMatrix,
    ElementRef,
    empty,
    with_capacity,
    from_flat,
    from_rows,
    from_numpy,
)

__all__ = [
    # Version
    '__version__',
    # Core types
    'DynamicMatrix',
    'ElementRef',
    'Array',
    'Buffer',
    'SliceView',
    'RawParts',
    'Ownership',
    'OwnershipTracker',
    # Type constants
    'DType',
    'validate_dtype',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'uint32',
    'uint64',
    'bool_',
    'object_',
    # Errors
    'DmatError',
    'ShapeError',
    'IndexingError',
    'DetachedError',
    'MatrixPanic',
    # Configuration
    'MemoryConfig',
    'DmatConfig',
    'config',
    'get_config',
    # Convenience functions
    'empty',
    'with_capacity',
    'from_flat',
    'from_rows',
    'from_numpy',
]
