from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SchoolResponse(BaseModel):
    """Directory entry for a school."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    npsn: str | None = None
    status: str | None = None
    bentuk: str | None = None
    alamat: str | None = None
    kelurahan: str | None = None
    kecamatan: str | None = None
    telp: str | None = None
    contact: str | None = None
    lat: float | None = None
    lng: float | None = None
    description: str | None = None
    programs: str | None = None
    achievements: str | None = None
    website: str | None = None


class SchoolSummaryResponse(SchoolResponse):
    """School list entry with its aggregate rating."""

    avg_rating: float = 0.0
    review_count: int = 0


class ReviewResponse(BaseModel):
    """A user's four-criterion review of a school."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    school_id: int
    user_id: str
    kenyamanan: float
    pembelajaran: float
    fasilitas: float
    kepemimpinan: float
    komentar: str | None = None
    created_at: datetime.datetime
    average: float | None = None


class ReviewWithAuthorResponse(ReviewResponse):
    user_name: str | None = None


class SchoolDetailResponse(SchoolSummaryResponse):
    """Full school profile with its reviews, newest first."""

    profile_completeness: int = 0
    reviews: list[ReviewWithAuthorResponse] = []


class NearbySchoolResponse(BaseModel):
    id: int
    name: str
    alamat: str | None = None
    lat: float
    lng: float
    distance: float  # km, 2 decimal places


class _SchoolFields(BaseModel):
    npsn: str | None = None
    status: str | None = None
    bentuk: str | None = None
    alamat: str | None = None
    kelurahan: str | None = None
    kecamatan: str | None = None
    telp: str | None = None
    contact: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    description: str | None = None
    programs: str | None = None
    achievements: str | None = None
    website: str | None = None

    @model_validator(mode="after")
    def _coordinates_come_in_pairs(self) -> _SchoolFields:
        # Partial updates change both coordinates or neither
        if ("lat" in self.model_fields_set) != ("lng" in self.model_fields_set):
            raise ValueError("lat and lng must be provided together")
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be provided together")
        return self


class SchoolCreateRequest(_SchoolFields):
    name: str = Field(min_length=1, max_length=255)


class SchoolUpdateRequest(_SchoolFields):
    """Partial update; only fields present in the payload are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)


class ReviewSubmitRequest(BaseModel):
    kenyamanan: float
    pembelajaran: float
    fasilitas: float
    kepemimpinan: float
    komentar: str | None = None


class ReviewUpdateRequest(BaseModel):
    kenyamanan: float | None = None
    pembelajaran: float | None = None
    fasilitas: float | None = None
    kepemimpinan: float | None = None
    komentar: str | None = None
