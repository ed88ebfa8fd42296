"""
Great-circle distance helpers.

Distances are kilometres on a sphere of radius 6371. The bounding box is only a
coarse SQL prefilter; ``haversine_km`` makes the final inclusive decision.
"""
from math import radians, degrees, sin, cos, asin, sqrt
from typing import NamedTuple, Optional

EARTH_RADIUS_KM = 6371.0


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: Optional[float]  # None when the box wraps a pole or the antimeridian
    max_lng: Optional[float]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(a)))


def within_radius(lat1: float, lng1: float, lat2: float, lng2: float, radius_km: float) -> bool:
    return haversine_km(lat1, lng1, lat2, lng2) <= radius_km


def bounding_box(lat: float, lng: float, radius_km: float, pad: float = 1e-6) -> BoundingBox:
    """Smallest lat/lng rectangle containing every point within radius_km"""
    angular = radius_km / EARTH_RADIUS_KM
    min_lat = lat - degrees(angular) - pad
    max_lat = lat + degrees(angular) + pad

    if min_lat <= -90 or max_lat >= 90:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), None, None)

    ratio = sin(angular) / cos(radians(lat))
    if ratio >= 1:
        return BoundingBox(min_lat, max_lat, None, None)

    delta_lng = degrees(asin(ratio)) + pad
    min_lng, max_lng = lng - delta_lng, lng + delta_lng
    if min_lng < -180 or max_lng > 180:
        return BoundingBox(min_lat, max_lat, None, None)
    return BoundingBox(min_lat, max_lat, min_lng, max_lng)


def bbox_clause(lat_column, lng_column, box: BoundingBox) -> list:
    """SQLAlchemy filter clauses for a bounding box"""
    clauses = [lat_column.between(box.min_lat, box.max_lat)]
    if box.min_lng is not None:
        clauses.append(lng_column.between(box.min_lng, box.max_lng))
    return clauses
