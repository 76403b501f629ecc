"""
Pytest configuration and shared fixtures for dmat tests.
"""

import pytest
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import dmat
from dmat import DynamicMatrix, config


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts and ends with default configuration."""
    config.reset()
    yield
    config.reset()


@pytest.fixture
def matrix_3x3():
    """3x3 int64 matrix built from the flat values 1..9.

    Matrix:
    [[1, 2, 3],
     [4, 5, 6],
     [7, 8, 9]]
    """
    return DynamicMatrix.from_flat(list(range(1, 10)), 3, dtype='int64')


@pytest.fixture
def matrix_3x2():
    """3x2 int64 matrix, ready to receive a third column.

    Matrix:
    [[1, 2],
     [4, 5],
     [7, 8]]
    """
    mat = DynamicMatrix(2, dtype='int64')
    mat.push_row([1, 2])
    mat.push_row([4, 5])
    mat.push_row([7, 8])
    return mat


@pytest.fixture
def object_matrix():
    """2x2 matrix of arbitrary Python objects."""
    return dmat.from_rows([["a", {"k": 1}], [None, (1, 2)]], dtype='object')

