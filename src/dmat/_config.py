"""
dmat Config - Memory Strategy Configuration

Controls how matrix buffers are allocated and grown without threading
extra arguments through every constructor.

Environment overrides (read once at import):
    DMAT_ALIGNMENT       Alignment in bytes for numeric blocks
    DMAT_GROWTH_FACTOR   Capacity multiplier on reallocation
    DMAT_DEFAULT_DTYPE   Element type used when none is given
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from ._dtypes import DType, validate_dtype

logger = logging.getLogger("dmat.config")


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class MemoryConfig:
    """Configuration for buffer allocation."""
    alignment: int = 64            # Byte alignment of numeric blocks
    growth_factor: float = 2.0     # Capacity multiplier when a push overflows
    min_capacity: int = 4          # Smallest non-zero allocation, in elements

    def __post_init__(self):
        if self.alignment <= 0 or self.alignment & (self.alignment - 1):
            raise ValueError(f"alignment must be a positive power of two, got {self.alignment}")
        if self.growth_factor <= 1.0:
            raise ValueError(f"growth_factor must be > 1.0, got {self.growth_factor}")
        if self.min_capacity < 1:
            raise ValueError(f"min_capacity must be >= 1, got {self.min_capacity}")


# =============================================================================
# Global Configuration Manager
# =============================================================================

class DmatConfig:
    """
    Global configuration manager for dmat.

    Provides thread-local configuration with context manager support.

    Example:
        # Global configuration
        dmat.config.memory = MemoryConfig(growth_factor=1.5)

        # Local configuration (context manager)
        with dmat.config.local(memory=MemoryConfig(alignment=16)):
            m = dmat.with_capacity(100, 8)
        # Back to global config
    """

    def __init__(self):
        self._global_memory = MemoryConfig()
        self._global_default_dtype = DType.FLOAT64

        # Thread-local storage for context overrides
        self._local = threading.local()

    # -------------------------------------------------------------------------
    # Property Accessors (with thread-local override support)
    # -------------------------------------------------------------------------

    @property
    def memory(self) -> MemoryConfig:
        """Get memory configuration."""
        if getattr(self._local, "memory", None) is not None:
            return self._local.memory
        return self._global_memory

    @memory.setter
    def memory(self, value: MemoryConfig):
        """Set global memory configuration."""
        if not isinstance(value, MemoryConfig):
            raise TypeError(f"Expected MemoryConfig, got {type(value).__name__}")
        self._global_memory = value

    @property
    def default_dtype(self) -> DType:
        """Element type used when a constructor is given none."""
        if getattr(self._local, "default_dtype", None) is not None:
            return self._local.default_dtype
        return self._global_default_dtype

    @default_dtype.setter
    def default_dtype(self, value):
        self._global_default_dtype = validate_dtype(value)

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, memory: Optional[MemoryConfig] = None,
              default_dtype: Any = None) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            memory: MemoryConfig override
            default_dtype: dtype override

        Returns:
            Context manager
        """
        kwargs = {}
        if memory is not None:
            kwargs["memory"] = memory
        if default_dtype is not None:
            kwargs["default_dtype"] = validate_dtype(default_dtype)
        return _LocalConfigContext(self, **kwargs)

    def _set_local(self, **kwargs):
        """Set thread-local configuration."""
        for key, value in kwargs.items():
            setattr(self._local, key, value)

    def _clear_local(self, keys: List[str]):
        """Clear thread-local configuration."""
        for key in keys:
            if hasattr(self._local, key):
                setattr(self._local, key, None)

    # -------------------------------------------------------------------------
    # Reset / Environment
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset all configurations to defaults."""
        self._global_memory = MemoryConfig()
        self._global_default_dtype = DType.FLOAT64

    def load_env(self, environ: Optional[Dict[str, str]] = None):
        """
        Apply DMAT_* environment overrides.

        Values that fail validation are logged and ignored so a bad
        environment never prevents import.
        """
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        if "DMAT_ALIGNMENT" in env:
            overrides["alignment"] = env["DMAT_ALIGNMENT"]
        if "DMAT_GROWTH_FACTOR" in env:
            overrides["growth_factor"] = env["DMAT_GROWTH_FACTOR"]

        if overrides:
            fields = asdict(self._global_memory)
            try:
                if "alignment" in overrides:
                    fields["alignment"] = int(overrides["alignment"])
                if "growth_factor" in overrides:
                    fields["growth_factor"] = float(overrides["growth_factor"])
                self._global_memory = MemoryConfig(**fields)
                logger.debug(f"Memory config from environment: {self._global_memory}")
            except ValueError as e:
                logger.warning(f"Ignoring invalid DMAT_* memory override: {e}")

        if "DMAT_DEFAULT_DTYPE" in env:
            try:
                self._global_default_dtype = validate_dtype(env["DMAT_DEFAULT_DTYPE"])
            except (ValueError, TypeError) as e:
                logger.warning(f"Ignoring invalid DMAT_DEFAULT_DTYPE: {e}")

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "memory": asdict(self.memory),
            "default_dtype": self.default_dtype.value,
        }

    def __repr__(self) -> str:
        return f"DmatConfig({self.to_dict()})"


class _LocalConfigContext:
    """Context manager for local configuration override."""

    def __init__(self, config: DmatConfig, **kwargs):
        self._config = config
        self._kwargs = kwargs
        self._keys = list(kwargs.keys())

    def __enter__(self):
        self._config._set_local(**self._kwargs)
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._config._clear_local(self._keys)
        return False


# =============================================================================
# Global Instance
# =============================================================================

config = DmatConfig()
config.load_env()


def get_config() -> DmatConfig:
    """Get the global configuration instance."""
    return config


__all__ = [
    "MemoryConfig",
    "DmatConfig",
    "config",
    "get_config",
]
