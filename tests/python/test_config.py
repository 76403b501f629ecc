"""
Tests for global and thread-local configuration.
"""

import logging
import threading

import pytest

import dmat
from dmat import DmatConfig, DType, DynamicMatrix, MemoryConfig, config, get_config


class TestDefaults:

    def test_get_config(self):
        assert get_config() is config
        assert dmat.config is config

    def test_default_values(self):
        assert config.memory == MemoryConfig()
        assert config.memory.alignment == 64
        assert config.memory.growth_factor == 2.0
        assert config.memory.min_capacity == 4
        assert config.default_dtype is DType.FLOAT64

    def test_to_dict(self):
        assert config.to_dict() == {
            "memory": {"alignment": 64, "growth_factor": 2.0, "min_capacity": 4},
            "default_dtype": "float64",
        }

    def test_reset(self):
        config.default_dtype = 'int32'
        config.memory = MemoryConfig(min_capacity=16)
        config.reset()
        assert config.default_dtype is DType.FLOAT64
        assert config.memory.min_capacity == 4


class TestMemoryConfig:

    @pytest.mark.parametrize("kwargs", [
        {"alignment": 0},
        {"alignment": 48},
        {"growth_factor": 1.0},
        {"min_capacity": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            MemoryConfig(**kwargs)

    def test_setter_type_check(self):
        with pytest.raises(TypeError):
            config.memory = {"alignment": 16}

    def test_growth_sequence(self):
        """Capacity follows max(needed, ceil(cap * factor), min_capacity)."""
        with config.local(memory=MemoryConfig(growth_factor=1.5, min_capacity=2)):
            mat = DynamicMatrix(1, dtype='int64')
            caps = []
            for i in range(4):
                mat.push_row([i])
                caps.append(mat.capacity())
        assert caps == [2, 2, 3, 5]

    def test_alignment_applies(self):
        with config.local(memory=MemoryConfig(alignment=256)):
            mat = DynamicMatrix.with_capacity(2, 2, dtype='uint8')
        assert mat.as_ptr().value % 256 == 0


class TestLocalConfig:

    def test_local_default_dtype(self):
        with config.local(default_dtype='int32'):
            assert DynamicMatrix(2).dtype is DType.INT32
        assert DynamicMatrix(2).dtype is DType.FLOAT64

    def test_local_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with config.local(default_dtype='uint8'):
                raise RuntimeError("boom")
        assert config.default_dtype is DType.FLOAT64

    def test_local_is_thread_local(self):
        seen = []

        def worker():
            seen.append(config.default_dtype)

        with config.local(default_dtype='int64'):
            t = threading.Thread(target=worker)
            t.start()
            t.join()
            assert config.default_dtype is DType.INT64
        assert seen == [DType.FLOAT64]

    def test_local_rejects_bad_dtype(self):
        with pytest.raises(ValueError):
            config.local(default_dtype='quaternion')


class TestLoadEnv:

    def test_memory_overrides(self):
        cfg = DmatConfig()
        cfg.load_env({"DMAT_ALIGNMENT": "128", "DMAT_GROWTH_FACTOR": "1.25"})
        assert cfg.memory.alignment == 128
        assert cfg.memory.growth_factor == 1.25
        assert cfg.memory.min_capacity == 4

    def test_default_dtype_override(self):
        cfg = DmatConfig()
        cfg.load_env({"DMAT_DEFAULT_DTYPE": "float32"})
        assert cfg.default_dtype is DType.FLOAT32

    def test_invalid_values_are_ignored(self, caplog):
        caplog.set_level(logging.WARNING, logger="dmat.config")
        cfg = DmatConfig()
        cfg.load_env({"DMAT_ALIGNMENT": "12", "DMAT_DEFAULT_DTYPE": "nope"})
        assert cfg.memory.alignment == 64
        assert cfg.default_dtype is DType.FLOAT64
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2

    def test_empty_environment(self):
        cfg = DmatConfig()
        cfg.load_env({})
        assert cfg.to_dict() == DmatConfig().to_dict()
