import json
import logging

import numpy as np
import pytest

from tests.auxiliaries import (
    closed_ring,
    feature,
    feature_collection,
    rectangle,
    write_geojson,
)
from tests.locations import TEST_DATASET, TEST_NR_OF_POLYGONS, TEST_ZONE_NAMES
from tzboundary.boundaries import BoundingBox, Polygon
from tzboundary.dataset_parser import Diagnostic, parse_dataset, read_dataset, to_polygon
from tzboundary.errors import DatasetFormatError, InvalidGeometryError

VALID_FEATURE = feature("Europe/Berlin", [rectangle(13.0, 13.8, 52.3, 52.7)])

# description, polygon (list of rings), expected part of the diagnostic
MALFORMED_POLYGONS = [
    ("empty ring", [[]], "no coordinates"),
    ("two distinct points", [[[0.0, 0.0], [1.0, 1.0], [0.0, 0.0]]], "degenerate"),
    ("repeated point", [[[1.0, 1.0]] * 5], "degenerate"),
    ("single component", [[[0.0], [1.0, 0.0], [1.0, 1.0], [0.0]]], "fewer than two components"),
    ("lng out of bounds", [rectangle(170.0, 181.0, 0.0, 1.0)], "out of bounds"),
    ("lat out of bounds", [rectangle(0.0, 1.0, 80.0, 90.5)], "out of bounds"),
    ("bow tie", [closed_ring([(0.0, 0.0), (1.0, 1.0), (1.0, 0.0), (0.0, 1.0)])], "self intersecting"),
    (
        "degenerate hole",
        [rectangle(0.0, 10.0, 0.0, 10.0), [[1.0, 1.0], [2.0, 2.0], [1.0, 1.0]]],
        "hole 0",
    ),
]


@pytest.mark.unit
def test_parse_test_dataset(collection):
    result = parse_dataset(TEST_DATASET)
    assert result.diagnostics == []
    assert result.collection == collection
    assert len(collection) == TEST_NR_OF_POLYGONS
    assert collection.zone_names == TEST_ZONE_NAMES
    # one record per polygon in dataset order
    expected_zones = (
        ["Europe/Berlin"]
        + ["Europe/Paris"] * 3
        + TEST_ZONE_NAMES[2:]
    )
    assert [record.zone_name for record in collection] == expected_zones


@pytest.mark.unit
def test_polygon_with_hole(collection):
    johannesburg, = collection.records_of("Africa/Johannesburg")
    polygon = johannesburg.polygon
    assert polygon.nr_of_holes == 1
    # the closing point has been removed
    assert polygon.exterior.shape == (2, 4)
    np.testing.assert_array_equal(polygon.holes[0][0], [27.5, 29.0, 29.0, 27.5])
    assert johannesburg.bbox == BoundingBox(27.0, 30.0, -31.0, -28.0)


@pytest.mark.unit
def test_antimeridian_bbox(collection):
    fiji, = collection.records_of("Pacific/Fiji")
    assert fiji.bbox == BoundingBox(177.0, -178.0, -19.0, -15.0)
    assert fiji.bbox.crosses_antimeridian


@pytest.mark.unit
def test_altitude_component_ignored():
    ring = [pos + [100.0] for pos in rectangle(0.0, 1.0, 0.0, 1.0)]
    result = parse_dataset(feature_collection(feature("Etc/GMT", [ring])))
    record, = result.collection
    assert record.polygon == Polygon([[0.0, 1.0, 1.0, 0.0], [0.0, 0.0, 1.0, 1.0]])


@pytest.mark.unit
def test_unclosed_ring_accepted():
    ring = rectangle(0.0, 1.0, 0.0, 1.0)[:-1]
    result = parse_dataset(feature_collection(feature("Etc/GMT", [ring])))
    record, = result.collection
    assert record.polygon.exterior.shape == (2, 4)


@pytest.mark.unit
@pytest.mark.parametrize("description, polygon, reason", MALFORMED_POLYGONS)
def test_malformed_polygon_skipped(description, polygon, reason, caplog):
    dataset = feature_collection(
        VALID_FEATURE,
        feature("Europe/Paris", [rectangle(2.0, 2.6, 48.6, 49.0)], polygon),
    )
    with caplog.at_level(logging.WARNING, logger="tzboundary.dataset_parser"):
        result = parse_dataset(dataset)
    # the valid parts of the dataset are still usable
    assert [record.zone_name for record in result.collection] == [
        "Europe/Berlin",
        "Europe/Paris",
    ]
    diagnostic, = result.diagnostics
    assert diagnostic.feature_nr == 1
    assert diagnostic.zone_name == "Europe/Paris"
    assert diagnostic.polygon_nr == 1
    assert reason in diagnostic.reason, description
    assert "Europe/Paris" in caplog.text


@pytest.mark.unit
def test_to_polygon_errors():
    with pytest.raises(InvalidGeometryError):
        to_polygon([])
    with pytest.raises(InvalidGeometryError, match="boundary"):
        to_polygon([[[0.0, 0.0], [1.0, 1.0]]])
    # also a ValueError
    with pytest.raises(ValueError):
        to_polygon([rectangle(0.0, 1.0, 0.0, 1.0), [[0.0, float("nan")]] * 4])


@pytest.mark.unit
@pytest.mark.parametrize(
    "invalid_feature, zone_name",
    [
        ({"type": "Feature", "properties": {}, "geometry": VALID_FEATURE["geometry"]}, None),
        ({"type": "Feature", "properties": {"tzid": "Europe/Paris"}, "geometry": None}, "Europe/Paris"),
        (
            {
                "type": "Feature",
                "properties": {"tzid": "Europe/Paris"},
                "geometry": {"type": "Point", "coordinates": [2.0, 48.0]},
            },
            "Europe/Paris",
        ),
        ("not a feature", None),
    ],
)
def test_invalid_feature_skipped(invalid_feature, zone_name):
    result = parse_dataset(feature_collection(invalid_feature, VALID_FEATURE))
    assert len(result.collection) == 1
    assert result.diagnostics == [
        Diagnostic(0, zone_name, None, result.diagnostics[0].reason)
    ]
    assert "invalid feature" in str(result.diagnostics[0])


@pytest.mark.unit
def test_diagnostic_str():
    assert str(Diagnostic(3, "Europe/Paris", 1, "the ring is degenerate")) == (
        "feature 3 (Europe/Paris), polygon 1: the ring is degenerate"
    )
    assert str(Diagnostic(0, None, None, "invalid feature")) == "feature 0: invalid feature"


@pytest.mark.unit
def test_no_valid_polygon():
    dataset = feature_collection(
        feature("Europe/Berlin", [[[0.0, 0.0], [1.0, 1.0], [0.0, 0.0]]])
    )
    with pytest.raises(DatasetFormatError, match="no valid boundary polygon"):
        parse_dataset(dataset)
    with pytest.raises(DatasetFormatError):
        parse_dataset(feature_collection())


@pytest.mark.unit
@pytest.mark.parametrize(
    "source",
    [
        b"this is not JSON",
        b"[1, 2, 3]",
        json.dumps({"type": "Feature", "features": []}).encode(),
        json.dumps({"type": "FeatureCollection"}).encode(),
        {"type": "FeatureCollection", "features": "none"},
    ],
)
def test_invalid_dataset(source):
    with pytest.raises(DatasetFormatError):
        read_dataset(source)


@pytest.mark.unit
def test_unreadable_dataset(tmp_path):
    with pytest.raises(DatasetFormatError, match="could not be read"):
        parse_dataset(tmp_path / "missing.json")
    # a directory
    with pytest.raises(DatasetFormatError):
        parse_dataset(tmp_path)


@pytest.mark.unit
def test_sources(dataset_path, collection):
    assert parse_dataset(dataset_path).collection == collection
    assert parse_dataset(str(dataset_path)).collection == collection
    assert parse_dataset(dataset_path.read_bytes()).collection == collection


@pytest.mark.unit
def test_max_features(tmp_path):
    path = write_geojson(tmp_path / "dataset.json", TEST_DATASET)
    result = parse_dataset(path, max_features=2)
    assert result.collection.zone_names == TEST_ZONE_NAMES[:2]
    assert len(result.collection) == 4


# polygons bounded by the +-180 meridian are plain polygons in the lng/lat plane
FULL_WIDTH_BAND = rectangle(-180.0, 180.0, -10.0, 10.0)
POLAR_CAP = closed_ring(
    [(-180.0, -90.0), (-180.0, -70.0), (0.0, -65.0), (180.0, -70.0), (180.0, -90.0)]
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "ring, expected_bbox",
    [
        (FULL_WIDTH_BAND, BoundingBox(-180.0, 180.0, -10.0, 10.0)),
        (POLAR_CAP, BoundingBox(-180.0, 180.0, -90.0, -65.0)),
    ],
)
def test_rings_along_antimeridian(ring, expected_bbox):
    result = parse_dataset(feature_collection(feature("Antarctica/Troll", [ring])))
    assert result.diagnostics == []
    record, = result.collection
    assert record.bbox == expected_bbox
    assert not record.bbox.crosses_antimeridian
    x_coords, y_coords = record.polygon.exterior
    # every vertex lies within the bounding box
    assert all(expected_bbox.contains(lng, lat) for lng, lat in zip(x_coords, y_coords))
