"""
ownership and cache lifecycle of the boundary collection

    MISSING ──> BUILDING ──> READY
                   ^           │ (expectations changed, invalidated)
                   │           v
                   └──────── STALE

On first access the binary cache file is decoded. If it matches the expected metadata the
raw dataset is not touched at all (fast path). A missing, corrupt or outdated cache file
triggers a rebuild from the raw dataset, the result is written back to the cache file atomically.
"""
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from tzboundary.boundaries import BoundaryCollection, CacheMetadata
from tzboundary.cache_codec import decode, peek_metadata, write_cache
from tzboundary.configs import (
    CACHE_FILE_NAME,
    CACHE_FORMAT_VERSION,
    DEFAULT_CACHE_DIR,
    PRODUCER_VERSION,
    UNKNOWN_DATASET_VERSION,
)
from tzboundary.dataset_parser import DatasetSource, Diagnostic, parse_dataset
from tzboundary.errors import CacheCorruptError, DatasetFormatError

logger = logging.getLogger(__name__)

DatasetProvider = Union[DatasetSource, Callable[[], DatasetSource]]


class CacheState(Enum):
    MISSING = "missing"
    BUILDING = "building"
    READY = "ready"
    STALE = "stale"


def get_default_cache_path(dataset_version: str) -> Path:
    """one cache file per dataset version"""
    return DEFAULT_CACHE_DIR / dataset_version / CACHE_FILE_NAME


class BoundaryStore:
    """owns the boundary collection for the lifetime of the process

    The collection is built at most once per cache generation and is immutable afterwards:
    it can be shared read-only between any number of concurrent lookups.
    Building is serialised by a lock within the process. Across processes the atomic
    replacement of the cache file guarantees that no partially written file is ever read.

    :param dataset: the raw dataset (path, raw bytes or decoded GeoJSON object)
        or a callable providing it. only accessed when the cache has to be (re)built.
    :param cache_path: location of the binary cache file.
        defaults to a file per dataset version within the user cache directory.
    :param dataset_version: version of the raw dataset (e.g. "2024a"). part of the cache metadata.
    :param producer_version: version of the software producing the cache. part of the cache metadata.
    :param format_version: version of the binary cache layout. part of the cache metadata.
    :param max_features: only parse the first features of the dataset (debugging)
    """

    def __init__(
        self,
        dataset: Optional[DatasetProvider] = None,
        cache_path: Optional[Union[str, Path]] = None,
        dataset_version: str = UNKNOWN_DATASET_VERSION,
        producer_version: str = PRODUCER_VERSION,
        format_version: int = CACHE_FORMAT_VERSION,
        max_features: Optional[int] = None,
    ):
        self._dataset = dataset
        # the default location follows the dataset version
        self._default_cache_path = cache_path is None
        if cache_path is None:
            cache_path = get_default_cache_path(dataset_version)
        self.cache_path: Path = Path(cache_path)
        self.expected_metadata = CacheMetadata(
            format_version, dataset_version, producer_version
        )
        self.max_features = max_features
        self.diagnostics: List[Diagnostic] = []
        self._collection: Optional[BoundaryCollection] = None
        self._state = CacheState.MISSING
        self._force_rebuild = False
        self._lock = threading.Lock()

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._collection is not None

    @property
    def collection(self) -> BoundaryCollection:
        return self.load()

    def load(self) -> BoundaryCollection:
        """returns the boundary collection, loading or building it on first access

        :raises DatasetFormatError: if a build is required and the raw dataset is unusable
        """
        # NOTE: no locking required once the collection is available
        collection = self._collection
        if collection is not None:
            return collection
        with self._lock:
            if self._collection is None:
                self._collection = self._load_or_build()
            return self._collection

    def invalidate(self) -> None:
        """discards the collection. the next access rebuilds it from the raw dataset"""
        with self._lock:
            self._collection = None
            self._force_rebuild = True
            self._state = CacheState.STALE
        logger.info("boundary collection invalidated")

    def update_dataset(self, dataset: DatasetProvider, dataset_version: str) -> None:
        """switches to another release of the raw dataset

        the current collection becomes stale if it has been created from another dataset version
        """
        with self._lock:
            self._dataset = dataset
            if dataset_version == self.expected_metadata.dataset_version:
                return
            self.expected_metadata = self.expected_metadata._replace(
                dataset_version=dataset_version
            )
            if self._default_cache_path:
                self.cache_path = get_default_cache_path(dataset_version)
            if self._collection is not None:
                logger.info(
                    "boundary collection is stale: dataset version changed to %s",
                    dataset_version,
                )
                self._collection = None
                self._state = CacheState.STALE

    def _resolve_dataset(self) -> DatasetSource:
        dataset = self._dataset
        if dataset is None:
            raise DatasetFormatError(
                f"the boundary cache {self.cache_path} has to be built, but no raw dataset has been configured"
            )
        if callable(dataset):
            return dataset()
        return dataset

    def _read_cache(self) -> Optional[BoundaryCollection]:
        """
        :return: the cached collection or None if the cache file is missing, corrupt or outdated
        """
        try:
            buf = self.cache_path.read_bytes()
        except FileNotFoundError:
            logger.info("no boundary cache found at %s", self.cache_path)
            self._state = CacheState.MISSING
            return None
        except OSError as err:
            logger.warning("the boundary cache %s is not readable: %s", self.cache_path, err)
            self._state = CacheState.STALE
            return None

        try:
            metadata = peek_metadata(buf)
            if not metadata.matches(self.expected_metadata):
                logger.info(
                    "the boundary cache %s is outdated: %s (expected: %s)",
                    self.cache_path,
                    metadata,
                    self.expected_metadata,
                )
                self._state = CacheState.STALE
                return None
            collection, _ = decode(buf)
        except CacheCorruptError as err:
            logger.warning("the boundary cache %s is corrupt: %s", self.cache_path, err)
            self._state = CacheState.STALE
            return None

        logger.info(
            "loaded %d boundary polygons from cache %s", len(collection), self.cache_path
        )
        return collection

    def _build(self) -> BoundaryCollection:
        previous_state = self._state
        self._state = CacheState.BUILDING
        logger.info("building the boundary collection from the raw dataset...")
        try:
            result = parse_dataset(self._resolve_dataset(), self.max_features)
        except BaseException:
            self._state = previous_state
            raise

        try:
            write_cache(self.cache_path, result.collection, self.expected_metadata)
        except OSError as err:
            # the collection can still be used. the next process will have to build it again
            logger.warning(
                "the boundary cache could not be written to %s: %s", self.cache_path, err
            )
        self.diagnostics = result.diagnostics
        return result.collection

    def _load_or_build(self) -> BoundaryCollection:
        collection = None
        if self._force_rebuild:
            self._state = CacheState.STALE
        else:
            collection = self._read_cache()
            self.diagnostics = []

        if collection is None:
            collection = self._build()
            self._force_rebuild = False
        self._state = CacheState.READY
        return collection
