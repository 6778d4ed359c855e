"""
module level query functions backed by a single shared ``TimezoneFinder`` instance

the instance is created on the first query. its configuration is taken from ``configure()``
or otherwise from the environment variables:

    TZBOUNDARY_DATASET          path to the raw GeoJSON dataset
    TZBOUNDARY_CACHE_DIR        directory of the binary cache file
    TZBOUNDARY_DATASET_VERSION  release of the raw dataset
"""
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Union

from tzboundary.boundary_store import BoundaryStore, DatasetProvider
from tzboundary.configs import (
    CACHE_FILE_NAME,
    ENV_CACHE_DIR,
    ENV_DATASET_PATH,
    ENV_DATASET_VERSION,
    UNKNOWN_DATASET_VERSION,
)
from tzboundary.timezonefinder import TimezoneFinder

logger = logging.getLogger(__name__)

_tf_instance: Optional[TimezoneFinder] = None
_tf_lock = threading.Lock()


def configure(
    dataset: Optional[DatasetProvider] = None,
    cache_path: Optional[Union[str, Path]] = None,
    dataset_version: str = UNKNOWN_DATASET_VERSION,
) -> TimezoneFinder:
    """(re)creates the shared instance used by the module level functions

    NOTE: replaces the previous instance. the boundaries are loaded on the next query
    """
    global _tf_instance
    store = BoundaryStore(
        dataset=dataset, cache_path=cache_path, dataset_version=dataset_version
    )
    with _tf_lock:
        _tf_instance = TimezoneFinder(store)
        return _tf_instance


def _store_from_environment() -> BoundaryStore:
    dataset = os.environ.get(ENV_DATASET_PATH)
    dataset_version = os.environ.get(ENV_DATASET_VERSION, UNKNOWN_DATASET_VERSION)
    cache_path = None
    cache_dir = os.environ.get(ENV_CACHE_DIR)
    if cache_dir:
        cache_path = Path(cache_dir) / CACHE_FILE_NAME
    logger.debug(
        "configuring the shared instance from the environment: dataset=%s, version=%s, cache=%s",
        dataset,
        dataset_version,
        cache_path,
    )
    return BoundaryStore(
        dataset=dataset or None, cache_path=cache_path, dataset_version=dataset_version
    )


def get_instance() -> TimezoneFinder:
    global _tf_instance
    instance = _tf_instance
    if instance is not None:
        return instance
    with _tf_lock:
        if _tf_instance is None:
            _tf_instance = TimezoneFinder(_store_from_environment())
        return _tf_instance


def reset() -> None:
    """drops the shared instance"""
    global _tf_instance
    with _tf_lock:
        _tf_instance = None


def timezones_at(*, lng: float, lat: float) -> List[str]:
    """Find all timezones at the given coordinates.

    :param lng: longitude of the point in degree (-180.0 to 180.0)
    :param lat: latitude in degree (-90.0 to 90.0)
    :return: the names of all matching zones, possibly empty
    """
    return get_instance().timezones_at(lng=lng, lat=lat)


def timezone_at(*, lng: float, lat: float) -> Optional[str]:
    """Find the unique timezone at the given coordinates.

    :param lng: longitude of the point in degree (-180.0 to 180.0)
    :param lat: latitude in degree (-90.0 to 90.0)
    :return: the timezone name or None
    :raises AmbiguousZoneError: if more than one zone matched
    """
    return get_instance().timezone_at(lng=lng, lat=lat)


def timezone_at_land(*, lng: float, lat: float) -> Optional[str]:
    """Find the land timezone at the given coordinates.

    :param lng: longitude of the point in degree (-180.0 to 180.0)
    :param lat: latitude in degree (-90.0 to 90.0)
    :return: the land timezone name or None for ocean zones
    """
    return get_instance().timezone_at_land(lng=lng, lat=lat)


def get_geometry(tz_name: str, coords_as_pairs: bool = False):
    """Get the geometry of a timezone: multiple boundary polygons with holes

    :param tz_name: name of the timezone
    :param coords_as_pairs: determines the structure of the polygon representation
    :return: ``[ [polygon1, hole1, hole2...], [polygon2, ...], ...]``
    """
    return get_instance().get_geometry(tz_name, coords_as_pairs=coords_as_pairs)
