"""
pytest configuration for dfplot tests.
"""

import pytest
import sys
import tempfile
from pathlib import Path

import polars as pl

# Add the parent directory to sys.path to ensure imports work
sys.path.insert(0, str(Path(__file__).parent.parent))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sales_df():
    """Small table with two string group columns and two numeric value columns."""
    return pl.DataFrame(
        {
            "region": ["EU", "US", "EU", "US", "EU"],
            "tier": ["gold", "gold", "silver", "silver", "gold"],
            "month": ["jan", "jan", "feb", "feb", "mar"],
            "t": [1.0, 2.0, 3.0, 4.0, 5.0],
            "sales": [10.0, 20.0, 30.0, 40.0, 50.0],
            "costs": [1, 2, 3, 4, 5],
        }
    )


@pytest.fixture
def proportion_df():
    """The worked proportion example: A:(4, 2), B:(2, 2) after grouping by x."""
    return pl.DataFrame({"x": ["A", "A", "B"], "y1": [1.0, 3.0, 2.0], "y2": [1.0, 1.0, 2.0]})
