""" utility functions

geometric helpers operating on rings stored as float64 numpy arrays of shape (2, N):
    [ [x1,x2,x3...], [y1,y2,y3...]]  with x = longitude and y = latitude
"""
import re
from typing import Tuple

import numpy as np

from tzboundary.configs import (
    ANTIMERIDIAN_JUMP_THRES,
    LNG_PERIOD,
    MAX_LAT_VAL,
    MAX_LNG_VAL,
    OCEAN_TIMEZONE_PREFIX,
    CoordLists,
    CoordPairs,
)
from tzboundary.errors import InvalidCoordinateError


def inside_polygon(x: float, y: float, coords: np.ndarray) -> bool:
    """
    Implementing the ray casting point in polygon test algorithm
    cf. https://en.wikipedia.org/wiki/Point_in_polygon#Ray_casting_algorithm
    :param x: longitude of the point
    :param y: latitude of the point
    :param coords: a ring represented by an array containing two rows (x and y coordinates):
        [ [x1,x2,x3...], [y1,y2,y3...]]
        the ring is implicitly closed: the edge from the last to the first point is part of it
    :return: true if the point (x,y) lies within the polygon

    The edges are treated as straight lines in the lng/lat plane.
    To avoid expensive division the slopes of the line segments are being compared
    by bringing the divisors to the other side ( dy/dx > a  ==  dy > a * dx ).
    Points lying directly on an edge might be counted as inside.
    """
    x_coords = coords[0]
    y_coords = coords[1]
    nr_coords = len(x_coords)
    inside = False

    # the edge from the last to the first point is checked first
    y1 = y_coords[-1]
    y_gt_y1 = y > y1
    for i in range(nr_coords):
        y2 = y_coords[i]
        y_gt_y2 = y > y2
        if y_gt_y1 ^ y_gt_y2:  # XOR
            # [p1-p2] crosses horizontal line in p
            x1 = x_coords[i - 1]
            x2 = x_coords[i]
            # only count crossings "right" of the point ( >= x)
            x_le_x1 = x <= x1
            x_le_x2 = x <= x2
            if x_le_x1 or x_le_x2:
                if x_le_x1 and x_le_x2:
                    # p1 and p2 are both to the right -> valid crossing
                    inside = not inside
                else:
                    # compare the slope of the line [p1-p2] and [p-p2]
                    # depending on the position of p2 this determines whether
                    # the polygon edge is right or left of the point
                    slope1 = (y2 - y) * (x2 - x1)
                    slope2 = (y2 - y1) * (x2 - x)
                    # NOTE: accept slope equality to also detect if p lies directly on an edge
                    if y_gt_y1:
                        if slope1 <= slope2:
                            inside = not inside
                    elif slope1 >= slope2:  # NOT y_gt_y1
                        inside = not inside

        # next point
        y1 = y2
        y_gt_y1 = y_gt_y2

    return inside


def validate_coordinates(lng: float, lat: float) -> Tuple[float, float]:
    try:
        lng, lat = float(lng), float(lat)
    except (TypeError, ValueError) as err:
        raise InvalidCoordinateError(
            f"The given coordinate (lng={lng!r}, lat={lat!r}) is not numeric"
        ) from err
    # NOTE: NaN fails both range checks
    if not -MAX_LNG_VAL <= lng <= MAX_LNG_VAL:
        raise InvalidCoordinateError(f"The given longitude {lng} is out of bounds")
    if not -MAX_LAT_VAL <= lat <= MAX_LAT_VAL:
        raise InvalidCoordinateError(f"The given latitude {lat} is out of bounds")
    return lng, lat


def _has_wrapping_edge(ring: np.ndarray) -> bool:
    # an edge spanning more than half the globe takes the short way across the 180 degree meridian.
    # edges between two points on the +-180 meridian are straight lines along the border of the lng/lat plane
    x_coords = ring[0]
    if len(x_coords) < 2:
        return False
    # include the closing edge
    x_next = np.roll(x_coords, -1)
    jumps = np.abs(x_next - x_coords)
    on_border = (np.abs(x_coords) == MAX_LNG_VAL) & (np.abs(x_next) == MAX_LNG_VAL)
    return bool(np.any((jumps > ANTIMERIDIAN_JUMP_THRES) & ~on_border))


def crosses_antimeridian(ring: np.ndarray) -> bool:
    """
    :param ring: array of shape (2, N)
    :return: True if the (implicitly closed) ring wraps around the 180 degree meridian,
        i.e. its bounding box computed by ``compute_bbox()`` is flagged with xmin > xmax
    """
    xmin, xmax, _, _ = compute_bbox(ring)
    return xmin > xmax


def shift_longitudes(x_coords: np.ndarray) -> np.ndarray:
    """maps longitudes from [-180, 180] into [0, 360]"""
    return np.where(x_coords < 0.0, x_coords + LNG_PERIOD, x_coords)


def shift_longitude(lng: float) -> float:
    if lng < 0.0:
        return lng + LNG_PERIOD
    return lng


def shift_ring(ring: np.ndarray) -> np.ndarray:
    return np.vstack((shift_longitudes(ring[0]), ring[1]))


def compute_bbox(ring: np.ndarray) -> Tuple[float, float, float, float]:
    """
    computes the bounding box of a ring

    ATTENTION: for rings crossing the antimeridian the longitude range wraps around:
        the returned xmin is greater than xmax and the box covers [xmin, 180] and [-180, xmax].
        a wrapped box is only used if it actually wraps and encloses every vertex,
        otherwise the plain box in the lng/lat plane is returned.

    :param ring: array of shape (2, N)
    :return: xmin, xmax, ymin, ymax
    """
    x_coords = ring[0]
    y_coords = ring[1]
    ymin = float(np.min(y_coords))
    ymax = float(np.max(y_coords))
    plain_bbox = float(np.min(x_coords)), float(np.max(x_coords)), ymin, ymax
    if not _has_wrapping_edge(ring):
        return plain_bbox

    shifted = shift_longitudes(x_coords)
    xmin = float(np.min(shifted))
    xmax = float(np.max(shifted))
    if xmin > MAX_LNG_VAL:
        xmin -= LNG_PERIOD
    if xmax > MAX_LNG_VAL:
        xmax -= LNG_PERIOD
    if xmin <= xmax:
        # all vertices on one side of the antimeridian
        return plain_bbox
    if not np.all((x_coords >= xmin) | (x_coords <= xmax)):
        return plain_bbox
    return xmin, xmax, ymin, ymax


def _orientation(ax, ay, bx, by, cx, cy):
    # sign of the cross product (b - a) x (c - a)
    return np.sign((bx - ax) * (cy - ay) - (by - ay) * (cx - ax))


def is_self_intersecting(ring: np.ndarray) -> bool:
    """
    checks if any two non adjacent edges of the (implicitly closed) ring properly cross each other

    NOTE: edges merely touching each other or overlapping collinear edges are not detected.
    the check for each edge is vectorised over all other edges, the overall complexity is still quadratic.
    """
    x_coords = ring[0]
    y_coords = ring[1]
    nr_edges = len(x_coords)
    if nr_edges < 4:
        # a triangle cannot intersect itself
        return False
    # edge i goes from point i to point i+1 (the last edge closes the ring)
    ax, ay = x_coords, y_coords
    bx, by = np.roll(x_coords, -1), np.roll(y_coords, -1)
    for i in range(nr_edges - 2):
        # the neighbouring edges share an end point with edge i
        last_j = nr_edges - 1 if i > 0 else nr_edges - 2
        j = slice(i + 2, last_j + 1)
        o1 = _orientation(ax[i], ay[i], bx[i], by[i], ax[j], ay[j])
        o2 = _orientation(ax[i], ay[i], bx[i], by[i], bx[j], by[j])
        o3 = _orientation(ax[j], ay[j], bx[j], by[j], ax[i], ay[i])
        o4 = _orientation(ax[j], ay[j], bx[j], by[j], bx[i], by[i])
        if np.any((o1 * o2 < 0) & (o3 * o4 < 0)):
            return True
    return False


def convert2coords(ring: np.ndarray) -> CoordLists:
    # return a tuple of coordinate lists
    return [ring[0].tolist(), ring[1].tolist()]


def convert2coord_pairs(ring: np.ndarray) -> CoordPairs:
    # return a list of coordinate tuples (x,y)
    return list(zip(ring[0].tolist(), ring[1].tolist()))


def is_ocean_timezone(timezone_name: str) -> bool:
    if re.match(OCEAN_TIMEZONE_PREFIX, timezone_name) is None:
        return False
    return True
