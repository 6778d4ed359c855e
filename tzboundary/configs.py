import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Tuple

import numpy as np

PACKAGE_NAME = "tzboundary"

try:
    PACKAGE_VERSION = version(PACKAGE_NAME)
except PackageNotFoundError:
    # running from a source checkout
    PACKAGE_VERSION = "0.0.0+unknown"

OCEAN_TIMEZONE_PREFIX = r"Etc/GMT"

# CACHE FILE
# increment whenever the binary layout written by cache_codec.py changes
CACHE_FORMAT_VERSION: int = 1
# the cache is only re-used as long as the producing software stays the same
PRODUCER_VERSION = f"{PACKAGE_NAME}-{PACKAGE_VERSION}/numpy-{np.__version__.split('.')[0]}"
CACHE_FILE_NAME = "boundaries.bin"
TMP_CACHE_SUFFIX = ".tmp"

# ENVIRONMENT
ENV_DATASET_PATH = "TZBOUNDARY_DATASET"
ENV_CACHE_DIR = "TZBOUNDARY_CACHE_DIR"
ENV_DATASET_VERSION = "TZBOUNDARY_DATASET_VERSION"
UNKNOWN_DATASET_VERSION = "unknown"


def _default_cache_dir() -> Path:
    xdg_cache_home = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache_home:
        return Path(xdg_cache_home) / PACKAGE_NAME
    return Path.home() / ".cache" / PACKAGE_NAME


DEFAULT_CACHE_DIR = _default_cache_dir()

# BINARY FORMATS
# all values little endian
# I = unsigned 4byte integer
NR_BYTES_I = 4
DTYPE_FORMAT_I = "<I"
# d = 8byte float
NR_BYTES_D = 8
DTYPE_FORMAT_F_NUMPY = "<f8"
NR_BBOX_VALUES = 4
# the biggest number representable in a count field
THRES_DTYPE_I = 2 ** (NR_BYTES_I * 8)

# COORDINATES
MAX_LNG_VAL = 180.0
MAX_LAT_VAL = 90.0
# full longitude range. used for unwrapping rings crossing the antimeridian
LNG_PERIOD = 360.0
# any polygon edge spanning more than half the globe is interpreted as crossing the antimeridian
ANTIMERIDIAN_JUMP_THRES = 180.0

# GEOMETRY VALIDATION
MIN_RING_POINTS = 3
# segment crossing checks are quadratic. only applied to small rings
SELF_INTERSECTION_CHECK_MAX_POINTS = 256

# TYPES
CoordPairs = List[Tuple[float, float]]
CoordLists = List[List[float]]
