from tzboundary.boundaries import (
    BoundaryCollection,
    BoundaryRecord,
    BoundingBox,
    CacheMetadata,
    Polygon,
)
from tzboundary.boundary_store import BoundaryStore, CacheState
from tzboundary.errors import (
    AmbiguousZoneError,
    CacheCorruptError,
    DatasetFormatError,
    InvalidCoordinateError,
    TzBoundaryError,
)
from tzboundary.timezonefinder import TimezoneFinder

# Import module-level functions
from tzboundary.global_functions import (
    configure,
    get_geometry,
    timezone_at,
    timezone_at_land,
    timezones_at,
)

# https://docs.python.org/3/tutorial/modules.html#importing-from-a-package
# determines which objects will be imported with "import *"
__all__ = (
    "TimezoneFinder",
    "BoundaryStore",
    "CacheState",
    "BoundaryCollection",
    "BoundaryRecord",
    "BoundingBox",
    "CacheMetadata",
    "Polygon",
    "TzBoundaryError",
    "InvalidCoordinateError",
    "DatasetFormatError",
    "CacheCorruptError",
    "AmbiguousZoneError",
    "configure",
    "timezone_at",
    "timezones_at",
    "timezone_at_land",
    "get_geometry",
)
