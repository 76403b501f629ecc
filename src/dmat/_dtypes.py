"""
Element Types

Defines the element types a matrix buffer can hold and the mapping to
ctypes storage, struct format codes and numpy dtypes.

Numeric types live in an aligned raw block and can be handed to C code
through a pointer. OBJECT holds arbitrary Python objects in a
``ctypes.py_object`` block; it still has an address but is only
meaningful to code that understands ``PyObject*`` arrays.
"""

from __future__ import annotations

import ctypes
import operator
from ctypes import (
    c_double, c_float, c_int32, c_int64, c_uint8, c_uint32, c_uint64, py_object,
)
from enum import Enum
from typing import Any, Dict, Type, Union

import numpy as np


# =============================================================================
# Data Type Enumeration
# =============================================================================

class DType(str, Enum):
    """
    Supported element types.

    Members compare equal to their string names, so ``DType.FLOAT32 ==
    'float32'`` holds and either form can be passed wherever a dtype is
    expected.
    """
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    INT32 = 'int32'
    INT64 = 'int64'
    UINT8 = 'uint8'
    UINT32 = 'uint32'
    UINT64 = 'uint64'
    BOOL = 'bool'
    OBJECT = 'object'

    @property
    def ctype(self) -> Type:
        """Corresponding ctypes type."""
        return _DTYPE_INFO[self]["ctype"]

    @property
    def itemsize(self) -> int:
        """Size in bytes of one element."""
        return ctypes.sizeof(self.ctype)

    @property
    def format_code(self) -> str:
        """struct/memoryview format code."""
        return _DTYPE_INFO[self]["format"]

    @property
    def numpy_dtype(self) -> np.dtype:
        """Equivalent numpy dtype."""
        return np.dtype(_DTYPE_INFO[self]["numpy"])

    @property
    def is_numeric(self) -> bool:
        """True for types stored as plain bytes."""
        return self is not DType.OBJECT

    @property
    def is_integer(self) -> bool:
        """True for the signed and unsigned integer types."""
        return bool(np.issubdtype(self.numpy_dtype, np.integer))

    def check_value(self, value: Any) -> Any:
        """
        Return ``value`` ready for storage, or raise if this dtype cannot
        represent it.

        ctypes integer types wrap out-of-range values and ``c_bool``
        accepts any object, so integers and bools are checked here before
        they reach a block. Floats and objects pass through unchanged.

        Raises:
            TypeError: Wrong kind of value (e.g. a str for an int dtype).
            OverflowError: Integer outside the dtype's range.
        """
        if self is DType.BOOL:
            if isinstance(value, (bool, np.bool_)):
                return bool(value)
            value = _as_integer(value, self)
            if value not in (0, 1):
                raise OverflowError(f"{value} is not a valid bool element (expected 0 or 1)")
            return bool(value)
        if self.is_integer:
            value = _as_integer(value, self)
            info = np.iinfo(self.numpy_dtype)
            if not info.min <= value <= info.max:
                raise OverflowError(
                    f"{value} out of range for {self.value} [{info.min}, {info.max}]"
                )
        return value

    @classmethod
    def from_name(cls, name: str) -> "DType":
        """Get DType from string name (case-insensitive, with aliases)."""
        name_lower = name.lower()
        for dtype in cls:
            if dtype.value == name_lower:
                return dtype
        aliases = {
            "double": cls.FLOAT64,
            "float": cls.FLOAT64,
            "real": cls.FLOAT64,
            "int": cls.INT64,
            "index": cls.INT64,
            "long": cls.INT64,
            "byte": cls.UINT8,
            "any": cls.OBJECT,
        }
        if name_lower in aliases:
            return aliases[name_lower]
        raise ValueError(f"Unsupported dtype: {name}. "
                         f"Supported: {[d.value for d in cls]}")

    @classmethod
    def from_numpy(cls, np_dtype: Any) -> "DType":
        """Get DType from a numpy dtype."""
        np_dtype = np.dtype(np_dtype)
        for dtype, info in _DTYPE_INFO.items():
            if np.dtype(info["numpy"]) == np_dtype:
                return dtype
        raise ValueError(f"No dtype equivalent for numpy dtype {np_dtype}")


def _as_integer(value: Any, dtype: DType) -> int:
    try:
        return operator.index(value)
    except TypeError:
        raise TypeError(
            f"{dtype.value} element expected, got {type(value).__name__}"
        ) from None


# Type information table
_DTYPE_INFO: Dict[DType, Dict[str, Any]] = {
    DType.FLOAT32: {"ctype": c_float, "format": "f", "numpy": np.float32},
    DType.FLOAT64: {"ctype": c_double, "format": "d", "numpy": np.float64},
    DType.INT32: {"ctype": c_int32, "format": "i", "numpy": np.int32},
    DType.INT64: {"ctype": c_int64, "format": "q", "numpy": np.int64},
    DType.UINT8: {"ctype": c_uint8, "format": "B", "numpy": np.uint8},
    DType.UINT32: {"ctype": c_uint32, "format": "I", "numpy": np.uint32},
    DType.UINT64: {"ctype": c_uint64, "format": "Q", "numpy": np.uint64},
    DType.BOOL: {"ctype": ctypes.c_bool, "format": "?", "numpy": np.bool_},
    DType.OBJECT: {"ctype": py_object, "format": "O", "numpy": object},
}


# =============================================================================
# Type Mapping (Python type -> DType)
# =============================================================================

TYPE_MAP: Dict[type, DType] = {
    float: DType.FLOAT64,
    int: DType.INT64,
    bool: DType.BOOL,
    object: DType.OBJECT,
}

CTYPE_MAP: Dict[Type, DType] = {info["ctype"]: dtype for dtype, info in _DTYPE_INFO.items()}


# Public constants
float32 = DType.FLOAT32
float64 = DType.FLOAT64
int32 = DType.INT32
int64 = DType.INT64
uint8 = DType.UINT8
uint32 = DType.UINT32
uint64 = DType.UINT64
bool_ = DType.BOOL
object_ = DType.OBJECT


# =============================================================================
# Type Validation
# =============================================================================

def validate_dtype(dtype: Union[DType, str, Type, None],
                   default: Union[DType, str] = DType.FLOAT64) -> DType:
    """
    Validate and normalize dtype specification.

    Args:
        dtype: DType member, string name, ctypes type, Python type,
               numpy dtype, or None
        default: Used when dtype is None

    Returns:
        Validated DType
    """
    if dtype is None:
        return validate_dtype(default)
    if isinstance(dtype, DType):
        return dtype
    if isinstance(dtype, str):
        return DType.from_name(dtype)
    if isinstance(dtype, np.dtype):
        return DType.from_numpy(dtype)
    if isinstance(dtype, type):
        if dtype in CTYPE_MAP:
            return CTYPE_MAP[dtype]
        if dtype in TYPE_MAP:
            return TYPE_MAP[dtype]
        if issubclass(dtype, np.generic):
            return DType.from_numpy(dtype)
    raise TypeError(f"Cannot convert {dtype!r} to DType")


__all__ = [
    "DType",
    "TYPE_MAP",
    "CTYPE_MAP",
    "validate_dtype",
    "float32",
    "float64",
    "int32",
    "int64",
    "uint8",
    "uint32",
    "uint64",
    "bool_",
    "object_",
]
