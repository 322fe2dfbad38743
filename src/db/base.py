from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from src.db.models import Review, School, User
from src.services.histogram import MonthCount, fill_monthly_histogram, window_start


@dataclass
class ReviewFilter:
    """Narrows a review query to one school and/or one author."""

    school_id: int | None = None
    user_id: str | None = None


@dataclass
class SchoolQuery:
    """Criteria for the public school listing."""

    search: str | None = None  # name-based search (case-insensitive substring)
    kecamatan: str | None = None
    bentuk: str | None = None
    limit: int | None = None
    offset: int | None = None


class SchoolRepository(ABC):
    """Abstract interface for all school, user and review data access.

    Read methods raise :class:`src.errors.DataUnavailable` when the backing
    store fails; they never retry.
    """

    # ------------------------------------------------------------------
    # Aggregate reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def count_users(self) -> int:
        """Return the total number of user accounts."""
        ...

    @abstractmethod
    async def count_schools(self) -> int:
        """Return the total number of schools."""
        ...

    @abstractmethod
    async def count_reviews(self, filters: ReviewFilter | None = None) -> int:
        """Return the number of reviews, optionally restricted by *filters*."""
        ...

    @abstractmethod
    async def find_recent_reviews(self, filters: ReviewFilter | None, limit: int) -> list[Review]:
        """Return up to *limit* reviews, newest first (ties by id descending).

        ``school`` and ``user`` are loaded on every returned review.
        """
        ...

    @abstractmethod
    async def count_signups_by_month(self, since: datetime.date) -> dict[str, int]:
        """Return ``{"YYYY-MM": n}`` for users created on or after *since*.

        Only months that have signups need to appear.
        """
        ...

    async def monthly_signup_histogram(
        self, months_back: int, today: datetime.date | None = None
    ) -> list[MonthCount]:
        """Signups per month over the trailing window, zero-filled."""
        if today is None:
            today = datetime.datetime.now(datetime.timezone.utc).date()
        counts = await self.count_signups_by_month(window_start(today, months_back))
        return fill_monthly_histogram(counts, months_back, today)

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_school_by_id(self, school_id: int) -> School | None:
        """Return a single school by primary key, or ``None`` if not found."""
        ...

    @abstractmethod
    async def find_schools(self, query: SchoolQuery) -> list[School]:
        """Return schools matching *query*, ordered by name, with reviews loaded."""
        ...

    @abstractmethod
    async def find_schools_with_coordinates(self) -> list[School]:
        """Return every school that has both ``lat`` and ``lng``."""
        ...

    @abstractmethod
    async def create_school(self, school: School) -> School:
        ...

    @abstractmethod
    async def update_school(self, school_id: int, changes: dict[str, Any]) -> School | None:
        """Apply *changes* to a school; ``None`` if it does not exist."""
        ...

    @abstractmethod
    async def delete_school(self, school_id: int) -> bool:
        ...

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_reviews_by_school(self, school_id: int) -> list[Review]:
        """Return all reviews for a school, newest first, with authors loaded."""
        ...

    @abstractmethod
    async def find_reviews_by_user(self, user_id: str) -> list[Review]:
        """Return all reviews written by a user, newest first, with schools loaded."""
        ...

    @abstractmethod
    async def find_review_by_id(self, review_id: int) -> Review | None:
        ...

    @abstractmethod
    async def create_review(self, review: Review) -> Review:
        ...

    @abstractmethod
    async def update_review(self, review_id: int, changes: dict[str, Any]) -> Review | None:
        ...

    @abstractmethod
    async def delete_review(self, review_id: int) -> bool:
        ...

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    async def find_user_by_id(self, user_id: str) -> User | None:
        ...

    @abstractmethod
    async def list_users(self) -> list[User]:
        """Return all users, newest first."""
        ...

    @abstractmethod
    async def create_user(self, user: User) -> User:
        ...

    @abstractmethod
    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        ...
