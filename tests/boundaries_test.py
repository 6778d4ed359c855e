import numpy as np
import pytest

from tests.auxiliaries import get_rnd_poly
from tests.locations import TEST_NR_OF_POLYGONS, TEST_ZONE_NAMES
from tzboundary.boundaries import (
    BoundaryCollection,
    BoundaryRecord,
    BoundingBox,
    CacheMetadata,
    Polygon,
)

SQUARE = [[0.0, 1.0, 1.0, 0.0], [0.0, 0.0, 1.0, 1.0]]
HOLE = [[0.25, 0.75, 0.75, 0.25], [0.25, 0.25, 0.75, 0.75]]


@pytest.mark.unit
class TestBoundingBox:
    @pytest.mark.parametrize(
        "lng, lat, expected",
        [
            (0.5, 0.5, True),
            (0.0, 0.0, True),
            (1.0, 1.0, True),
            (1.1, 0.5, False),
            (0.5, -0.1, False),
        ],
    )
    def test_contains(self, lng, lat, expected):
        bbox = BoundingBox(0.0, 1.0, 0.0, 1.0)
        assert not bbox.crosses_antimeridian
        assert bbox.contains(lng, lat) == expected

    @pytest.mark.parametrize(
        "lng, lat, expected",
        [
            (179.0, -17.0, True),
            (180.0, -17.0, True),
            (-180.0, -17.0, True),
            (-178.0, -17.0, True),
            (177.0, -17.0, True),
            (0.0, -17.0, False),
            (176.9, -17.0, False),
            (-177.9, -17.0, False),
            (179.0, -14.0, False),
        ],
    )
    def test_contains_antimeridian(self, lng, lat, expected):
        bbox = BoundingBox(177.0, -178.0, -19.0, -15.0)
        assert bbox.crosses_antimeridian
        assert bbox.contains(lng, lat) == expected

    @pytest.mark.parametrize(
        "bbox1, bbox2, expected",
        [
            ((0.0, 1.0, 0.0, 1.0), (0.5, 2.0, 0.5, 2.0), True),
            ((0.0, 1.0, 0.0, 1.0), (1.0, 2.0, 1.0, 2.0), True),
            ((0.0, 1.0, 0.0, 1.0), (1.1, 2.0, 0.0, 1.0), False),
            ((0.0, 1.0, 0.0, 1.0), (0.0, 1.0, 1.1, 2.0), False),
            ((177.0, -178.0, 0.0, 1.0), (-179.0, -170.0, 0.0, 1.0), True),
            ((177.0, -178.0, 0.0, 1.0), (178.0, 179.0, 0.0, 1.0), True),
            ((177.0, -178.0, 0.0, 1.0), (-170.0, 170.0, 0.0, 1.0), False),
            ((177.0, -178.0, 0.0, 1.0), (179.0, -179.0, 0.0, 1.0), True),
        ],
    )
    def test_overlaps(self, bbox1, bbox2, expected):
        bbox1 = BoundingBox(*bbox1)
        bbox2 = BoundingBox(*bbox2)
        assert bbox1.overlaps(bbox2) == expected
        assert bbox2.overlaps(bbox1) == expected

    def test_overlaps_type_check(self):
        with pytest.raises(TypeError):
            BoundingBox(0.0, 1.0, 0.0, 1.0).overlaps((0.0, 1.0, 0.0, 1.0))


@pytest.mark.unit
class TestPolygon:
    def test_closing_point_removed(self):
        closed = [SQUARE[0] + [0.0], SQUARE[1] + [0.0]]
        polygon = Polygon(closed)
        assert polygon.exterior.shape == (2, 4)
        assert polygon == Polygon(SQUARE)

    def test_rings_read_only(self):
        polygon = Polygon(SQUARE, [HOLE])
        assert polygon.exterior.dtype == np.float64
        for ring in polygon.rings:
            with pytest.raises(ValueError):
                ring[0, 0] = 5.0

    def test_input_not_shared(self):
        coords = np.array(SQUARE)
        polygon = Polygon(coords)
        coords[0, 0] = 5.0
        assert polygon.exterior[0, 0] == 0.0

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            Polygon([[0.0, 1.0, 2.0]])
        with pytest.raises(ValueError):
            Polygon([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])

    def test_equality(self):
        polygon = Polygon(SQUARE, [HOLE])
        assert polygon == Polygon(SQUARE, [HOLE])
        assert polygon != Polygon(SQUARE)
        assert polygon != Polygon(HOLE, [SQUARE])
        assert polygon != "polygon"

    def test_rings(self):
        polygon = Polygon(SQUARE, [HOLE, HOLE])
        assert polygon.nr_of_holes == 2
        assert len(polygon.rings) == 3
        np.testing.assert_array_equal(polygon.rings[0], SQUARE)

    def test_shifted(self):
        polygon = Polygon(
            [[177.0, -178.0, -178.0, 177.0], [-19.0, -19.0, -15.0, -15.0]],
            [[[178.0, -179.0, -179.0, 178.0], [-18.0, -18.0, -16.0, -16.0]]],
        )
        assert polygon.crosses_antimeridian
        shifted = polygon.shifted()
        np.testing.assert_array_equal(shifted.exterior[0], [177.0, 182.0, 182.0, 177.0])
        np.testing.assert_array_equal(shifted.holes[0][0], [178.0, 181.0, 181.0, 178.0])
        np.testing.assert_array_equal(shifted.exterior[1], polygon.exterior[1])


@pytest.mark.unit
def test_record_bbox_derived_from_polygon():
    for _ in range(10):
        ring, _ = get_rnd_poly()
        record = BoundaryRecord.from_polygon("Europe/Berlin", Polygon(ring))
        x_coords, y_coords = ring
        assert record.bbox == BoundingBox(
            np.min(x_coords), np.max(x_coords), np.min(y_coords), np.max(y_coords)
        )


@pytest.mark.unit
class TestBoundaryCollection:
    def test_properties(self, collection: BoundaryCollection):
        assert len(collection) == TEST_NR_OF_POLYGONS
        assert collection.zone_names == TEST_ZONE_NAMES
        assert len(collection.records_of("Europe/Paris")) == 3
        assert collection.records_of("Europe/Paris")[1].bbox == BoundingBox(5.0, 5.5, 43.0, 43.5)
        assert collection.records_of("Mars/Olympus_Mons") == []

    def test_bbox_arrays(self, collection: BoundaryCollection):
        for boundary_id, record in enumerate(collection):
            assert collection.xmin[boundary_id] == record.bbox.xmin
            assert collection.xmax[boundary_id] == record.bbox.xmax
            assert collection.ymin[boundary_id] == record.bbox.ymin
            assert collection.ymax[boundary_id] == record.bbox.ymax
        with pytest.raises(ValueError):
            collection.xmin[0] = 0.0

    def test_sequence_protocol(self, collection: BoundaryCollection):
        records = list(collection)
        assert collection[0] is records[0]
        assert collection[-1] is records[-1]
        part = collection[1:3]
        assert isinstance(part, BoundaryCollection)
        assert list(part) == records[1:3]
        assert BoundaryCollection(records) == collection
        assert collection != BoundaryCollection(records[:-1])

    def test_empty(self):
        collection = BoundaryCollection()
        assert len(collection) == 0
        assert collection.zone_names == []
        assert collection.xmin.shape == (0,)


@pytest.mark.unit
def test_metadata_matches():
    metadata = CacheMetadata(1, "2024a", "tzboundary-0.1.0")
    assert metadata.matches(CacheMetadata(1, "2024a", "tzboundary-0.1.0"))
    assert not metadata.matches(CacheMetadata(2, "2024a", "tzboundary-0.1.0"))
    assert not metadata.matches(CacheMetadata(1, "2024b", "tzboundary-0.1.0"))
    assert not metadata.matches(CacheMetadata(1, "2024a", "tzboundary-0.2.0"))
