from typing import Iterable, Iterator, List, NamedTuple, Sequence, Tuple, Union, overload

import numpy as np

from tzboundary import utils
from tzboundary.configs import DTYPE_FORMAT_F_NUMPY, MAX_LNG_VAL


class BoundingBox(NamedTuple):
    """axis aligned longitude/latitude rectangle enclosing the exterior ring of a boundary polygon

    boxes of rings crossing the antimeridian are flagged by ``xmin > xmax``:
    they span the longitudes [xmin, 180] and [-180, xmax]
    """

    xmin: float
    xmax: float
    ymin: float
    ymax: float

    @classmethod
    def from_ring(cls, ring: np.ndarray) -> "BoundingBox":
        return cls(*utils.compute_bbox(ring))

    @property
    def crosses_antimeridian(self) -> bool:
        return self.xmin > self.xmax

    def contains(self, lng: float, lat: float) -> bool:
        if lat > self.ymax or lat < self.ymin:
            return False
        if self.crosses_antimeridian:
            return lng >= self.xmin or lng <= self.xmax
        return self.xmin <= lng <= self.xmax

    def _lng_ranges(self) -> List[Tuple[float, float]]:
        if self.crosses_antimeridian:
            return [(self.xmin, MAX_LNG_VAL), (-MAX_LNG_VAL, self.xmax)]
        return [(self.xmin, self.xmax)]

    def overlaps(self, other: "BoundingBox") -> bool:
        if not isinstance(other, BoundingBox):
            raise TypeError
        if self.ymin > other.ymax:
            return False
        if self.ymax < other.ymin:
            return False
        for xmin1, xmax1 in self._lng_ranges():
            for xmin2, xmax2 in other._lng_ranges():
                if xmin1 <= xmax2 and xmin2 <= xmax1:
                    return True
        return False


def _as_ring(coords) -> np.ndarray:
    ring = np.array(coords, dtype=DTYPE_FORMAT_F_NUMPY)
    if ring.ndim != 2 or ring.shape[0] != 2:
        raise ValueError(f"a ring must have the shape (2, N), got {ring.shape}")
    while ring.shape[1] > 1 and np.array_equal(ring[:, 0], ring[:, -1]):
        # the ring is closed implicitly. drop the repeated first point
        ring = ring[:, :-1]
    ring = np.ascontiguousarray(ring)
    # rings are shared between all lookups and must not be modified
    ring.flags.writeable = False
    return ring


class Polygon:
    """a boundary polygon: one exterior ring and any number of holes

    every ring is a float64 array of shape (2, N): [ [lng1, lng2, ...], [lat1, lat2, ...] ]
    """

    __slots__ = ["exterior", "holes"]

    exterior: np.ndarray
    holes: Tuple[np.ndarray, ...]

    def __init__(self, exterior, holes: Iterable = ()):
        self.exterior = _as_ring(exterior)
        self.holes = tuple(_as_ring(hole) for hole in holes)

    @property
    def rings(self) -> Tuple[np.ndarray, ...]:
        """the exterior ring followed by all holes"""
        return (self.exterior,) + self.holes

    @property
    def nr_of_holes(self) -> int:
        return len(self.holes)

    @property
    def crosses_antimeridian(self) -> bool:
        return utils.crosses_antimeridian(self.exterior)

    def shifted(self) -> "Polygon":
        """
        :return: a copy with all longitudes mapped into [0, 360].
            the rings of a polygon crossing the antimeridian become contiguous in this representation
        """
        return Polygon(
            utils.shift_ring(self.exterior),
            [utils.shift_ring(hole) for hole in self.holes],
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Polygon):
            return NotImplemented
        if len(self.holes) != len(other.holes):
            return False
        return all(
            np.array_equal(ring1, ring2)
            for ring1, ring2 in zip(self.rings, other.rings)
        )

    def __repr__(self) -> str:
        return f"Polygon(nr_of_points={self.exterior.shape[1]}, nr_of_holes={self.nr_of_holes})"


class BoundaryRecord(NamedTuple):
    zone_name: str
    polygon: Polygon
    bbox: BoundingBox

    @classmethod
    def from_polygon(cls, zone_name: str, polygon: Polygon) -> "BoundaryRecord":
        return cls(zone_name, polygon, BoundingBox.from_ring(polygon.exterior))


class BoundaryCollection(Sequence):
    """immutable ordered sequence of boundary records

    the order is the insertion order of the source dataset.
    all bounding boxes are additionally held as numpy arrays for vectorised filtering.
    """

    __slots__ = ["_records", "xmin", "xmax", "ymin", "ymax"]

    def __init__(self, records: Iterable[BoundaryRecord] = ()):
        self._records: Tuple[BoundaryRecord, ...] = tuple(records)
        bboxes = np.array(
            [record.bbox for record in self._records], dtype=DTYPE_FORMAT_F_NUMPY
        ).reshape(-1, 4)
        self.xmin = bboxes[:, 0]
        self.xmax = bboxes[:, 1]
        self.ymin = bboxes[:, 2]
        self.ymax = bboxes[:, 3]
        for arr in (self.xmin, self.xmax, self.ymin, self.ymax):
            arr.flags.writeable = False

    @overload
    def __getitem__(self, idx: int) -> BoundaryRecord: ...

    @overload
    def __getitem__(self, idx: slice) -> "BoundaryCollection": ...

    def __getitem__(self, idx: Union[int, slice]):
        if isinstance(idx, slice):
            return BoundaryCollection(self._records[idx])
        return self._records[idx]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[BoundaryRecord]:
        return iter(self._records)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundaryCollection):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"BoundaryCollection(nr_of_records={len(self)}, nr_of_zones={len(self.zone_names)})"

    @property
    def zone_names(self) -> List[str]:
        """the names of all zones in the order of their first occurrence"""
        return list(dict.fromkeys(record.zone_name for record in self._records))

    def records_of(self, zone_name: str) -> List[BoundaryRecord]:
        return [record for record in self._records if record.zone_name == zone_name]


class CacheMetadata(NamedTuple):
    format_version: int
    dataset_version: str
    producer_version: str

    def matches(self, expected: "CacheMetadata") -> bool:
        return tuple(self) == tuple(expected)
