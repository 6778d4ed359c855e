from typing import Sequence


class TzBoundaryError(Exception):
    """base class of all errors raised by tzboundary"""


class InvalidCoordinateError(TzBoundaryError, ValueError):
    """the queried coordinate lies outside of the valid value range"""


class DatasetFormatError(TzBoundaryError):
    """the raw timezone boundary dataset cannot be read or contains no usable boundary"""


class CacheCorruptError(TzBoundaryError):
    """the binary boundary cache is truncated or malformed"""


class AmbiguousZoneError(TzBoundaryError):
    """more than one timezone matched a query expecting a unique result

    Use ``timezones_at()`` to retrieve all matching zones.
    """

    def __init__(self, zone_names: Sequence[str], lng: float, lat: float):
        self.zone_names = list(zone_names)
        self.lng = lng
        self.lat = lat
        super().__init__(
            f"the coordinate (lng={lng}, lat={lat}) lies within {len(self.zone_names)} timezones "
            f"{self.zone_names}. use timezones_at() to query all matches."
        )


class InvalidGeometryError(TzBoundaryError, ValueError):
    """a single boundary polygon of the raw dataset is malformed

    raised while parsing a dataset and recorded as diagnostic: only the affected polygon is skipped
    """
