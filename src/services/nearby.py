from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from src.db.models import School
from src.errors import InvalidCoordinates
from src.services.ratings import round_rating

EARTH_RADIUS_KM = 6371.0
DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class Origin:
    """Reference point for a nearest-school search, in decimal degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class RankedSchool:
    school: School
    distance_km: float


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in kilometres between two points on Earth.

    Uses the Haversine formula.  Inputs are in decimal degrees.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def coordinates_in_range(lat: float | None, lng: float | None) -> bool:
    """True when both values are finite and within latitude/longitude bounds."""
    if lat is None or lng is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def validate_origin(lat: float | None, lng: float | None) -> Origin:
    """Return an :class:`Origin`, or raise :class:`InvalidCoordinates`.

    Rejects missing, non-numeric, NaN/infinite and out-of-range values so a
    bad origin never turns into a list of NaN distances.
    """
    try:
        lat_f = float(lat)  # type: ignore[arg-type]
        lng_f = float(lng)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinates(lat, lng) from exc

    if not coordinates_in_range(lat_f, lng_f):
        raise InvalidCoordinates(lat, lng)
    return Origin(lat_f, lng_f)


def nearest(origin: Origin, candidates: Iterable[School], limit: int = DEFAULT_LIMIT) -> list[RankedSchool]:
    """Rank *candidates* by distance from *origin*, closest first.

    Schools without a usable ``lat``/``lng`` pair (missing, non-finite or out
    of range) are skipped.  Distances are rounded half-up to 2 decimal places,
    the same rule as ratings, and equal distances are ordered by school id.
    """
    origin = validate_origin(origin.lat, origin.lng)
    if limit < 1:
        return []

    ranked = [
        RankedSchool(school, round_rating(haversine_distance(origin.lat, origin.lng, school.lat, school.lng), 2))
        for school in candidates
        if coordinates_in_range(school.lat, school.lng)
    ]
    ranked.sort(key=lambda r: (r.distance_km, r.school.id))
    return ranked[:limit]
