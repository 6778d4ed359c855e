from typing import Dict, Iterator, List

import numpy as np

from tzboundary import utils
from tzboundary.boundaries import BoundaryCollection, BoundaryRecord, Polygon


class LookupEngine:
    """finds all zones whose boundary polygons contain a point

    The boundary polygons are scanned linearly in collection order.
    The bounding boxes of all polygons are checked at once (vectorised),
    the expensive point in polygon test is only run for the remaining candidates.

    NOTE: ``candidates()`` is the single place deciding which polygons have to be tested.
    a spatial index (e.g. grid bucketing or an R-tree) can replace the linear bbox filter there
    without affecting the results.
    """

    __slots__ = ["collection", "_crosses_antimeridian", "_shifted_polygons"]

    def __init__(self, collection: BoundaryCollection):
        self.collection = collection
        self._crosses_antimeridian = collection.xmin > collection.xmax
        # polygons crossing the antimeridian are tested in the shifted [0, 360] longitude representation
        self._shifted_polygons: Dict[int, Polygon] = {
            int(boundary_id): collection[int(boundary_id)].polygon.shifted()
            for boundary_id in np.flatnonzero(self._crosses_antimeridian)
        }

    def __len__(self) -> int:
        return len(self.collection)

    def candidates(self, lng: float, lat: float) -> np.ndarray:
        """
        :return: the ids of all boundary polygons whose bounding box contains the point, in collection order
        """
        collection = self.collection
        in_lat_range = (collection.ymin <= lat) & (lat <= collection.ymax)
        # boxes crossing the antimeridian span [xmin, 180] and [-180, xmax]
        in_lng_range = np.where(
            self._crosses_antimeridian,
            (collection.xmin <= lng) | (lng <= collection.xmax),
            (collection.xmin <= lng) & (lng <= collection.xmax),
        )
        return np.flatnonzero(in_lat_range & in_lng_range)

    def inside_of_polygon(self, boundary_id: int, lng: float, lat: float) -> bool:
        """
        exact containment test. NOTE: does not check the bounding box

        :return: True if the point lies inside the boundary polygon, False if outside or in a hole.
        """
        polygon = self._shifted_polygons.get(boundary_id)
        if polygon is None:
            polygon = self.collection[boundary_id].polygon
        else:
            lng = utils.shift_longitude(lng)
        return _inside_with_holes(polygon, lng, lat)

    def iter_matching_boundaries(self, lng: float, lat: float) -> Iterator[int]:
        """yields the ids of all boundary polygons containing the point"""
        for boundary_id in self.candidates(lng, lat):
            boundary_id = int(boundary_id)
            if self.inside_of_polygon(boundary_id, lng, lat):
                yield boundary_id

    def find_zones(self, lng: float, lat: float) -> List[str]:
        """
        :param lng: longitude of the point in degree (-180.0 to 180.0), not validated
        :param lat: latitude of the point in degree (-90.0 to 90.0), not validated
        :return: the names of all zones containing the point in the order of their first occurrence.
            every zone is contained at most once.
        """
        matches: Dict[str, None] = {}
        for boundary_id in self.candidates(lng, lat):
            boundary_id = int(boundary_id)
            zone_name = self.collection[boundary_id].zone_name
            if zone_name in matches:
                # another polygon of this zone already matched
                continue
            if self.inside_of_polygon(boundary_id, lng, lat):
                matches[zone_name] = None
        return list(matches)


def _inside_with_holes(polygon: Polygon, lng: float, lat: float) -> bool:
    # NOTE: holes are much smaller (fewer points) -> less expensive to check
    # -> check holes before the boundary
    for hole in polygon.holes:
        if utils.inside_polygon(lng, lat, hole):
            # the point is within one of the holes
            # it is excluded from this boundary polygon
            return False
    return utils.inside_polygon(lng, lat, polygon.exterior)


def contains(record: BoundaryRecord, lng: float, lat: float) -> bool:
    """checks if a single boundary record contains the point (including the bounding box check)"""
    if not record.bbox.contains(lng, lat):
        return False
    polygon = record.polygon
    if record.bbox.crosses_antimeridian:
        polygon = polygon.shifted()
        lng = utils.shift_longitude(lng)
    return _inside_with_holes(polygon, lng, lat)
