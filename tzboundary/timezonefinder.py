from pathlib import Path
from typing import List, Optional, Union

from tzboundary import utils
from tzboundary.boundaries import BoundaryCollection
from tzboundary.boundary_store import BoundaryStore, DatasetProvider
from tzboundary.configs import CoordLists, CoordPairs, UNKNOWN_DATASET_VERSION
from tzboundary.errors import AmbiguousZoneError
from tzboundary.lookup import LookupEngine


class TimezoneFinder:
    """Class for finding the timezones of a point on earth offline.

    The timezone boundary polygons are parsed once from the raw dataset and kept in a binary cache file.
    Every query scans all polygons, the bounding boxes of the polygons are used
    to quickly dismiss polygons far away from the queried point.

    Once the boundaries are loaded, queries are free of side effects: a single instance
    can be shared between threads.

    :param store: the boundary store to use. when given, all other parameters are ignored.
    :param dataset: the raw timezone boundary dataset (GeoJSON file path, raw bytes or decoded object)
        or a callable providing it. only accessed if the cache has to be (re)built.
    :param cache_path: location of the binary cache file. None: user cache directory
    :param dataset_version: release of the raw dataset, e.g. "2024a"
    :param preload: load the boundaries directly instead of on the first query
    """

    __slots__ = ["store", "_engine"]

    def __init__(
        self,
        store: Optional[BoundaryStore] = None,
        *,
        dataset: Optional[DatasetProvider] = None,
        cache_path: Optional[Union[str, Path]] = None,
        dataset_version: str = UNKNOWN_DATASET_VERSION,
        preload: bool = False,
    ):
        if store is None:
            store = BoundaryStore(
                dataset=dataset, cache_path=cache_path, dataset_version=dataset_version
            )
        self.store = store
        self._engine: Optional[LookupEngine] = None
        if preload:
            self._engine = LookupEngine(self.store.load())

    @property
    def engine(self) -> LookupEngine:
        collection = self.store.load()
        engine = self._engine
        if engine is None or engine.collection is not collection:
            # first query or the store has been rebuilt in the meantime
            engine = LookupEngine(collection)
            self._engine = engine
        return engine

    @property
    def boundaries(self) -> BoundaryCollection:
        return self.store.load()

    @property
    def timezone_names(self) -> List[str]:
        return self.boundaries.zone_names

    @property
    def nr_of_zones(self) -> int:
        return len(self.timezone_names)

    @property
    def nr_of_polygons(self) -> int:
        return len(self.boundaries)

    def timezones_at(self, *, lng: float, lat: float) -> List[str]:
        """finds all timezones whose boundaries include the given point

        multiple results occur e.g. in disputed areas claimed by more than one zone.

        :param lng: longitude of the point in degree (-180.0 to 180.0)
        :param lat: latitude in degree (-90.0 to 90.0)
        :return: the names of all matching zones (possibly empty) in the order of the dataset
        :raises InvalidCoordinateError: if the point is out of bounds
        """
        lng, lat = utils.validate_coordinates(lng, lat)
        return self.engine.find_zones(lng, lat)

    def timezone_at(self, *, lng: float, lat: float) -> Optional[str]:
        """looks up the unique timezone the given point is included in

        :param lng: longitude of the point in degree (-180.0 to 180.0)
        :param lat: latitude in degree (-90.0 to 90.0)
        :return: the timezone name of the matching polygon or None when no zone matched
        :raises InvalidCoordinateError: if the point is out of bounds
        :raises AmbiguousZoneError: if more than one zone matched. use ``timezones_at()`` instead.
        """
        zone_names = self.timezones_at(lng=lng, lat=lat)
        if len(zone_names) == 0:
            return None
        if len(zone_names) > 1:
            raise AmbiguousZoneError(zone_names, lng, lat)
        return zone_names[0]

    def timezone_at_land(self, *, lng: float, lat: float) -> Optional[str]:
        """computes in which land timezone a point is included in

        :param lng: longitude of the point in degree (-180.0 to 180.0)
        :param lat: latitude in degree (-90.0 to 90.0)
        :return: the timezone name of a matching polygon or
            ``None`` when an ocean timezone ("Etc/GMT+-XX") or no zone has been matched.
        """
        tz_name = self.timezone_at(lng=lng, lat=lat)
        if tz_name is not None and utils.is_ocean_timezone(tz_name):
            return None
        return tz_name

    def get_geometry(
        self, tz_name: str, coords_as_pairs: bool = False
    ) -> List[List[Union[CoordPairs, CoordLists]]]:
        """retrieves the geometry of a timezone: multiple boundary polygons with holes

        :param tz_name: one of the names in ``self.timezone_names``
        :param coords_as_pairs: determines the structure of the polygon representation
        :return: a data structure representing the multipolygon of this timezone
            output format: ``[ [polygon1, hole1, hole2...], [polygon2, ...], ...]``
            and each polygon and hole is itself formatted like: ``([longitudes], [latitudes])``
            or ``[(lng1,lat1), (lng2,lat2),...]`` if ``coords_as_pairs=True``.
        :raises ValueError: if the timezone does not exist
        """
        records = self.boundaries.records_of(tz_name)
        if len(records) == 0:
            raise ValueError(f"The timezone '{tz_name}' does not exist.")
        if coords_as_pairs:
            conversion_method = utils.convert2coord_pairs
        else:
            conversion_method = utils.convert2coords
        return [
            [conversion_method(ring) for ring in record.polygon.rings]
            for record in records
        ]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False
