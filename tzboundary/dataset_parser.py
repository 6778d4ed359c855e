"""
parsing of the raw timezone boundary dataset

the dataset is expected in the GeoJSON format used by the releases of
`timezone-boundary-builder <https://github.com/evansiroky/timezone-boundary-builder>`__:
a ``FeatureCollection`` with one feature per zone (property ``tzid``),
each holding a ``Polygon`` or ``MultiPolygon`` geometry.

every polygon (with its holes) becomes one ``BoundaryRecord``.
malformed polygons are skipped and reported as ``Diagnostic``,
the build only fails when the dataset itself is unreadable or no valid polygon remains.
"""
import logging
import os
from pathlib import Path
from typing import Any, List, Mapping, NamedTuple, Optional, Union

import numpy as np
from pydantic import ValidationError

from tzboundary import utils
from tzboundary.boundaries import BoundaryCollection, BoundaryRecord, Polygon
from tzboundary.configs import (
    DTYPE_FORMAT_F_NUMPY,
    MAX_LAT_VAL,
    MAX_LNG_VAL,
    MIN_RING_POINTS,
    SELF_INTERSECTION_CHECK_MAX_POINTS,
)
from tzboundary.errors import DatasetFormatError, InvalidGeometryError
from tzboundary.geojson_schema import GeoJSON, Timezone

logger = logging.getLogger(__name__)

DatasetSource = Union[str, os.PathLike, bytes, Mapping[str, Any]]


class Diagnostic(NamedTuple):
    """a skipped part of the dataset"""

    feature_nr: int
    zone_name: Optional[str]
    # None: the whole feature has been skipped
    polygon_nr: Optional[int]
    reason: str

    def __str__(self) -> str:
        location = f"feature {self.feature_nr}"
        if self.zone_name is not None:
            location += f" ({self.zone_name})"
        if self.polygon_nr is not None:
            location += f", polygon {self.polygon_nr}"
        return f"{location}: {self.reason}"


class ParseResult(NamedTuple):
    collection: BoundaryCollection
    diagnostics: List[Diagnostic]


def read_dataset(source: DatasetSource) -> GeoJSON:
    """reads and validates the top level structure of the dataset

    :param source: path to a GeoJSON file, its raw content (bytes) or the already decoded JSON object
    :raises DatasetFormatError: if the data cannot be read or is not a GeoJSON FeatureCollection
    """
    try:
        if isinstance(source, Mapping):
            return GeoJSON.model_validate(source)
        if isinstance(source, (bytes, bytearray)):
            return GeoJSON.model_validate_json(source)
        path = Path(source)
        logger.info("reading timezone boundary dataset %s", path)
        return GeoJSON.model_validate_json(path.read_bytes())
    except OSError as err:
        raise DatasetFormatError(f"the dataset {source} could not be read: {err}") from err
    except ValidationError as err:
        raise DatasetFormatError(
            f"the dataset is not a valid GeoJSON FeatureCollection: {err}"
        ) from err


def to_ring(positions: List[List[float]]) -> np.ndarray:
    """
    converts a list of GeoJSON positions [[lng, lat], ...] into an array of shape (2, N)

    :raises InvalidGeometryError: if the ring is degenerate or has invalid coordinates
    """
    if any(len(pos) < 2 for pos in positions):
        raise InvalidGeometryError("a position has fewer than two components")
    if len(positions) == 0:
        raise InvalidGeometryError("the ring has no coordinates")
    # NOTE: positions might have an altitude component
    ring = np.array([pos[:2] for pos in positions], dtype=DTYPE_FORMAT_F_NUMPY).T
    if not np.all(np.isfinite(ring)):
        raise InvalidGeometryError("the ring has non finite coordinates")
    if np.any(np.abs(ring[0]) > MAX_LNG_VAL) or np.any(np.abs(ring[1]) > MAX_LAT_VAL):
        raise InvalidGeometryError("the ring has coordinates out of bounds")
    nr_distinct_points = np.unique(ring, axis=1).shape[1]
    if nr_distinct_points < MIN_RING_POINTS:
        raise InvalidGeometryError(
            f"the ring is degenerate: only {nr_distinct_points} distinct points"
        )
    return ring


def check_self_intersection(ring: np.ndarray) -> None:
    nr_points = ring.shape[1]
    if nr_points > SELF_INTERSECTION_CHECK_MAX_POINTS:
        # too expensive
        return
    if ring.shape[1] > 1 and np.array_equal(ring[:, 0], ring[:, -1]):
        ring = ring[:, :-1]
    if utils.crosses_antimeridian(ring):
        ring = utils.shift_ring(ring)
    if utils.is_self_intersecting(ring):
        raise InvalidGeometryError("the ring is self intersecting")


def to_polygon(rings: List[List[List[float]]]) -> Polygon:
    """
    :param rings: the boundary ring followed by all holes. every ring as a list of GeoJSON positions
    :raises InvalidGeometryError: if any of the rings is malformed
    """
    if len(rings) == 0:
        raise InvalidGeometryError("the polygon has no rings")
    converted = []
    for ring_nr, positions in enumerate(rings):
        try:
            ring = to_ring(positions)
            check_self_intersection(ring)
        except InvalidGeometryError as err:
            ring_name = "boundary" if ring_nr == 0 else f"hole {ring_nr - 1}"
            raise InvalidGeometryError(f"{ring_name}: {err}") from err
        converted.append(ring)
    # the first entry is the boundary polygon
    # everything else is interpreted as a hole!
    return Polygon(converted[0], converted[1:])


def _get_tzid(feature: Any) -> Optional[str]:
    # best effort for naming a feature failing validation
    if not isinstance(feature, Mapping):
        return None
    properties = feature.get("properties")
    if not isinstance(properties, Mapping):
        return None
    tzid = properties.get("tzid")
    if not isinstance(tzid, str):
        return None
    return tzid


def parse_timezone(
    feature_nr: int, timezone: Timezone, diagnostics: List[Diagnostic]
) -> List[BoundaryRecord]:
    records = []
    for polygon_nr, rings in enumerate(timezone.polygons):
        try:
            polygon = to_polygon(rings)
        except InvalidGeometryError as err:
            diagnostic = Diagnostic(feature_nr, timezone.id, polygon_nr, str(err))
            logger.warning("skipping malformed polygon. %s", diagnostic)
            diagnostics.append(diagnostic)
            continue
        record = BoundaryRecord.from_polygon(timezone.id, polygon)
        logger.debug(
            "zone %s, polygon %d: %d points, %d holes",
            timezone.id,
            polygon_nr,
            polygon.exterior.shape[1],
            polygon.nr_of_holes,
        )
        records.append(record)
    return records


def parse_dataset(
    source: DatasetSource, max_features: Optional[int] = None
) -> ParseResult:
    """converts the raw dataset into a collection of boundary records

    :param source: path to a GeoJSON file, its raw content (bytes) or the already decoded JSON object
    :param max_features: only parse the first features (reduced datasets for debugging and testing)
    :return: the collection in dataset order and the diagnostics of all skipped parts
    :raises DatasetFormatError: if the dataset is unreadable or contains no valid polygon
    """
    geo_json = read_dataset(source)
    features = geo_json.features
    if max_features is not None:
        features = features[:max_features]

    records: List[BoundaryRecord] = []
    diagnostics: List[Diagnostic] = []
    for feature_nr, feature in enumerate(features):
        try:
            timezone = Timezone.model_validate(feature)
        except ValidationError as err:
            diagnostic = Diagnostic(
                feature_nr,
                _get_tzid(feature),
                None,
                f"invalid feature ({err.error_count()} validation errors)",
            )
            logger.warning("skipping invalid feature. %s", diagnostic)
            diagnostics.append(diagnostic)
            continue
        records.extend(parse_timezone(feature_nr, timezone, diagnostics))

    if len(records) == 0:
        raise DatasetFormatError(
            f"the dataset contains no valid boundary polygon ({len(diagnostics)} parts skipped)"
        )
    collection = BoundaryCollection(records)
    logger.info(
        "parsed %d boundary polygons of %d zones (%d parts skipped)",
        len(collection),
        len(collection.zone_names),
        len(diagnostics),
    )
    return ParseResult(collection, diagnostics)
