"""Geospatial helpers for proximity queries.

All points are ``(longitude, latitude)`` pairs in decimal degrees. The functions
here are pure; they never touch the database and never clamp bad input.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple, TypeVar

from civic_report.services.errors import InvalidCoordinates, ValidationError

EARTH_RADIUS_KM = 6371.0
_KM_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_KM / 180.0

T = TypeVar("T")


class Point(NamedTuple):
    """A validated coordinate pair."""

    longitude: float
    latitude: float


class BoundingBox(NamedTuple):
    min_longitude: float
    min_latitude: float
    max_longitude: float
    max_latitude: float

    def contains(self, point: Point) -> bool:
        return (
            self.min_longitude <= point.longitude <= self.max_longitude
            and self.min_latitude <= point.latitude <= self.max_latitude
        )


def is_valid_longitude(value: float) -> bool:
    return isinstance(value, int | float) and math.isfinite(value) and -180 <= value <= 180


def is_valid_latitude(value: float) -> bool:
    return isinstance(value, int | float) and math.isfinite(value) and -90 <= value <= 90


def validate_coordinates(longitude: float, latitude: float) -> Point:
    """Return a ``Point`` or raise ``InvalidCoordinates``."""
    if isinstance(longitude, bool) or isinstance(latitude, bool):
        raise InvalidCoordinates("Coordinates must be numbers")
    if not is_valid_longitude(longitude):
        raise InvalidCoordinates(f"Longitude must be between -180 and 180, got {longitude!r}")
    if not is_valid_latitude(latitude):
        raise InvalidCoordinates(f"Latitude must be between -90 and 90, got {latitude!r}")
    return Point(float(longitude), float(latitude))


def _as_point(value: Sequence[float]) -> Point:
    if isinstance(value, Point):
        return validate_coordinates(value.longitude, value.latitude)
    try:
        longitude, latitude = value
    except (TypeError, ValueError) as err:
        raise InvalidCoordinates("A point is a (longitude, latitude) pair") from err
    return validate_coordinates(longitude, latitude)


def distance(point_a: Sequence[float], point_b: Sequence[float]) -> float:
    """Great-circle distance in kilometres using the haversine formula."""
    a = _as_point(point_a)
    b = _as_point(point_b)

    lat_a = math.radians(a.latitude)
    lat_b = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat_a) * math.cos(lat_b) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def _validate_radius(radius_km: float) -> float:
    if isinstance(radius_km, bool) or not isinstance(radius_km, int | float):
        raise ValidationError("Radius must be a number")
    if not math.isfinite(radius_km) or radius_km < 0:
        raise ValidationError(f"Radius must be a non-negative finite number, got {radius_km!r}")
    return float(radius_km)


def within_radius(
    center: Sequence[float],
    radius_km: float,
    candidates: Iterable[T],
    key: Callable[[T], Sequence[float]] | None = None,
) -> list[T]:
    """Return the candidates no further than ``radius_km`` from ``center``.

    ``key`` extracts a ``(longitude, latitude)`` pair from each candidate; by
    default candidates are points themselves. Ordering is not guaranteed.
    """
    origin = _as_point(center)
    radius = _validate_radius(radius_km)
    extract = key or (lambda item: item)  # type: ignore[assignment,return-value]
    return [item for item in candidates if distance(origin, extract(item)) <= radius]


def km_to_meters(km: float) -> float:
    return km * 1000


def meters_to_km(meters: float) -> float:
    return meters / 1000


def bounding_box(points: Iterable[Sequence[float]]) -> BoundingBox:
    """Smallest axis-aligned box containing every point."""
    validated = [_as_point(p) for p in points]
    if not validated:
        raise ValidationError("No coordinates provided")
    return BoundingBox(
        min_longitude=min(p.longitude for p in validated),
        min_latitude=min(p.latitude for p in validated),
        max_longitude=max(p.longitude for p in validated),
        max_latitude=max(p.latitude for p in validated),
    )


def center_point(points: Iterable[Sequence[float]]) -> Point:
    """Arithmetic mean of the points (adequate for city-scale clusters)."""
    validated = [_as_point(p) for p in points]
    if not validated:
        raise ValidationError("No coordinates provided")
    count = len(validated)
    return Point(
        sum(p.longitude for p in validated) / count,
        sum(p.latitude for p in validated) / count,
    )


def radius_bounding_box(center: Sequence[float], radius_km: float) -> BoundingBox:
    """Box guaranteed to contain every point within ``radius_km`` of ``center``.

    Used as a cheap index prefilter before the exact haversine check. Near the
    poles or across the antimeridian the longitude span widens to the full range.
    """
    origin = _as_point(center)
    radius = _validate_radius(radius_km)

    d_lat = radius / _KM_PER_DEGREE_LAT
    min_lat = origin.latitude - d_lat
    max_lat = origin.latitude + d_lat
    if min_lat <= -90 or max_lat >= 90:
        return BoundingBox(-180.0, max(min_lat, -90.0), 180.0, min(max_lat, 90.0))

    # Widest longitude span occurs at the latitude furthest from the equator.
    widest_lat = max(abs(min_lat), abs(max_lat))
    km_per_degree_lon = _KM_PER_DEGREE_LAT * math.cos(math.radians(widest_lat))
    d_lon = radius / km_per_degree_lon
    min_lon = origin.longitude - d_lon
    max_lon = origin.longitude + d_lon
    if min_lon < -180 or max_lon > 180:
        return BoundingBox(-180.0, min_lat, 180.0, max_lat)
    return BoundingBox(min_lon, min_lat, max_lon, max_lat)
