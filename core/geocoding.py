"""
Geocoding helpers.

Great-circle distance with the Haversine formula and distance ranking of
anything that carries latitude/longitude.
"""

import logging
from math import atan2, cos, radians, sin, sqrt
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

T = TypeVar('T')

Coordinates = Tuple[float, float]


def haversine_distance(origin: Coordinates, destination: Coordinates) -> float:
    """
    Calculate the distance between two (lat, lng) points.

    Args:
        origin: (latitude, longitude) in degrees
        destination: (latitude, longitude) in degrees

    Returns:
        Distance in kilometers
    """
    lat1, lng1 = radians(origin[0]), radians(origin[1])
    lat2, lng2 = radians(destination[0]), radians(destination[1])

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    a = sin(dlat / 2)**2 + cos(lat1) * cos(lat2) * sin(dlng / 2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def rank_by_distance(
    items: Iterable[T],
    origin: Coordinates,
    get_coordinates: Callable[[T], Optional[Coordinates]],
    limit: Optional[int] = None,
) -> List[Tuple[T, float]]:
    """
    Sort items by distance from origin, nearest first.

    Items whose coordinates are unknown are skipped. Distances are rounded
    to one decimal place before sorting; ties keep the input order.

    Returns:
        List of (item, distance_km) pairs, truncated to limit when given.
    """
    ranked = []
    for item in items:
        coords = get_coordinates(item)
        if coords is None or coords[0] is None or coords[1] is None:
            continue
        distance = round(haversine_distance(origin, (float(coords[0]), float(coords[1]))), 1)
        ranked.append((item, distance))

    ranked.sort(key=lambda pair: pair[1])

    if limit is not None:
        ranked = ranked[:max(limit, 0)]
    return ranked
