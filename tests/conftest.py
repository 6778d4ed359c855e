"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.auxiliaries import write_geojson
from tests.locations import TEST_DATASET, TEST_DATASET_VERSION
from tzboundary import TimezoneFinder
from tzboundary.boundaries import BoundaryCollection
from tzboundary.boundary_store import BoundaryStore
from tzboundary.configs import CACHE_FILE_NAME
from tzboundary.dataset_parser import parse_dataset


def pytest_configure(config):
    """
    Register custom markers for different types of tests.
    """
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "examples: mark test as examples script test")
    config.addinivalue_line(
        "markers", "slow: mark test as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(scope="session")
def dataset_path(tmp_path_factory) -> Path:
    """the synthetic test dataset written to a GeoJSON file"""
    return write_geojson(tmp_path_factory.mktemp("dataset") / "combined.json", TEST_DATASET)


@pytest.fixture(scope="session")
def collection() -> BoundaryCollection:
    """the parsed test dataset"""
    return parse_dataset(TEST_DATASET).collection


@pytest.fixture(scope="session")
def timezonefinder(tmp_path_factory, dataset_path) -> TimezoneFinder:
    """Shared TimezoneFinder instance with a freshly built cache."""
    cache_path = tmp_path_factory.mktemp("cache") / CACHE_FILE_NAME
    return TimezoneFinder(
        dataset=dataset_path,
        cache_path=cache_path,
        dataset_version=TEST_DATASET_VERSION,
        preload=True,
    )


@pytest.fixture(scope="session")
def tf(timezonefinder):
    """Alias fixture for the shared TimezoneFinder."""
    return timezonefinder


@pytest.fixture
def cache_path(tmp_path) -> Path:
    return tmp_path / "cache" / CACHE_FILE_NAME


@pytest.fixture
def store(dataset_path, cache_path) -> BoundaryStore:
    """a fresh store without cache file"""
    return BoundaryStore(
        dataset=dataset_path, cache_path=cache_path, dataset_version=TEST_DATASET_VERSION
    )
