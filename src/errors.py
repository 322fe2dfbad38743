"""Error kinds raised by the authorization and aggregation core.

Authorization denials are *not* exceptions; see
:class:`src.services.authorization.Decision`.
"""

from __future__ import annotations


class CoreError(Exception):
    """Base class for all errors raised by the core services."""


class InvalidCoordinates(CoreError):
    """Raised when a geospatial origin is missing, non-finite or out of range."""

    def __init__(self, lat: object, lng: object) -> None:
        self.lat = lat
        self.lng = lng
        super().__init__(f"Invalid coordinates: lat={lat!r}, lng={lng!r}")


class InvalidRating(CoreError):
    """Raised when a review sub-score lies outside the platform's rating bounds."""

    def __init__(self, field: str, value: object, low: float, high: float) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} must be between {low:g} and {high:g}, got {value!r}")


class OrphanedAdmin(CoreError):
    """Raised when a SCHOOL_ADMIN's assigned school does not resolve to a school."""

    def __init__(self, principal_id: str, school_id: int | None) -> None:
        self.principal_id = principal_id
        self.school_id = school_id
        if school_id is None:
            message = f"School admin {principal_id!r} is not assigned to any school"
        else:
            message = f"School admin {principal_id!r} is assigned to missing school {school_id}"
        super().__init__(message)


class UnknownRole(CoreError):
    """Raised when a principal carries a role the core does not recognise."""

    def __init__(self, role: object) -> None:
        self.role = role
        super().__init__(f"Unknown role: {role!r}")


class DataUnavailable(CoreError):
    """Raised when a read against the persistence layer fails or times out."""
