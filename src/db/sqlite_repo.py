from __future__ import annotations

import datetime
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy import delete, event, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import selectinload

from src.db.base import ReviewFilter, SchoolQuery, SchoolRepository
from src.db.models import Base, Review, School, User
from src.errors import DataUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _read(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Surface any storage failure in a read as :class:`DataUnavailable`."""

    @functools.wraps(method)
    async def wrapper(self: SQLiteSchoolRepository, *args: Any, **kwargs: Any) -> T:
        try:
            return await method(self, *args, **kwargs)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Repository read %s failed: %s", method.__name__, exc)
            raise DataUnavailable(f"{method.__name__} failed") from exc

    return wrapper


def _apply_review_filter(stmt: Any, filters: ReviewFilter | None) -> Any:
    if filters is None:
        return stmt
    if filters.school_id is not None:
        stmt = stmt.where(Review.school_id == filters.school_id)
    if filters.user_id is not None:
        stmt = stmt.where(Review.user_id == filters.user_id)
    return stmt


class SQLiteSchoolRepository(SchoolRepository):
    """SQLite-backed implementation of :class:`SchoolRepository`.

    Uses *aiosqlite* via SQLAlchemy's async engine.  Foreign-key enforcement
    is switched on for every connection so deleting a school or user removes
    its reviews.
    """

    def __init__(self, sqlite_path: str = "./data/sekolah.db") -> None:
        url = f"sqlite+aiosqlite:///{sqlite_path}"
        self._engine = create_async_engine(url, echo=False)
        event.listen(self._engine.sync_engine, "connect", _enable_foreign_keys)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        """Expose the underlying async engine (used by the application lifespan)."""
        return self._engine

    async def init_db(self) -> None:
        """Create all tables if they do not already exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # ------------------------------------------------------------------
    # Aggregate reads
    # ------------------------------------------------------------------

    @_read
    async def count_users(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(User.id)))
            return int(result.scalar_one())

    @_read
    async def count_schools(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(School.id)))
            return int(result.scalar_one())

    @_read
    async def count_reviews(self, filters: ReviewFilter | None = None) -> int:
        stmt = _apply_review_filter(select(func.count(Review.id)), filters)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    @_read
    async def find_recent_reviews(self, filters: ReviewFilter | None, limit: int) -> list[Review]:
        stmt = (
            _apply_review_filter(select(Review), filters)
            .options(selectinload(Review.school), selectinload(Review.user))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @_read
    async def count_signups_by_month(self, since: datetime.date) -> dict[str, int]:
        month = func.strftime("%Y-%m", User.created_at).label("month")
        stmt = (
            select(month, func.count(User.id))
            .where(User.created_at >= datetime.datetime.combine(since, datetime.time.min))
            .group_by(month)
            .order_by(month)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return {row[0]: int(row[1]) for row in result.all()}

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    @_read
    async def find_school_by_id(self, school_id: int) -> School | None:
        stmt = select(School).where(School.id == school_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    @_read
    async def find_schools(self, query: SchoolQuery) -> list[School]:
        stmt = select(School).options(selectinload(School.reviews))

        if query.search is not None:
            stmt = stmt.where(School.name.ilike(f"%{query.search}%"))
        if query.kecamatan is not None:
            stmt = stmt.where(School.kecamatan == query.kecamatan)
        if query.bentuk is not None:
            stmt = stmt.where(School.bentuk == query.bentuk)

        stmt = stmt.order_by(School.name, School.id)

        if query.offset is not None:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @_read
    async def find_schools_with_coordinates(self) -> list[School]:
        stmt = select(School).where(School.lat.is_not(None)).where(School.lng.is_not(None)).order_by(School.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create_school(self, school: School) -> School:
        async with self._session_factory() as session:
            session.add(school)
            await session.commit()
            await session.refresh(school)
            return school

    async def update_school(self, school_id: int, changes: dict[str, Any]) -> School | None:
        async with self._session_factory() as session:
            school = await session.get(School, school_id)
            if school is None:
                return None
            for key, value in changes.items():
                setattr(school, key, value)
            await session.commit()
            await session.refresh(school)
            return school

    async def delete_school(self, school_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(School).where(School.id == school_id))
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @_read
    async def find_reviews_by_school(self, school_id: int) -> list[Review]:
        stmt = (
            select(Review)
            .where(Review.school_id == school_id)
            .options(selectinload(Review.user))
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @_read
    async def find_reviews_by_user(self, user_id: str) -> list[Review]:
        stmt = (
            select(Review)
            .where(Review.user_id == user_id)
            .options(selectinload(Review.school))
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    @_read
    async def find_review_by_id(self, review_id: int) -> Review | None:
        stmt = select(Review).where(Review.id == review_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def create_review(self, review: Review) -> Review:
        async with self._session_factory() as session:
            session.add(review)
            await session.commit()
            await session.refresh(review)
            return review

    async def update_review(self, review_id: int, changes: dict[str, Any]) -> Review | None:
        async with self._session_factory() as session:
            review = await session.get(Review, review_id)
            if review is None:
                return None
            for key, value in changes.items():
                setattr(review, key, value)
            await session.commit()
            await session.refresh(review)
            return review

    async def delete_review(self, review_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(Review).where(Review.id == review_id))
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @_read
    async def find_user_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    @_read
    async def list_users(self) -> list[User]:
        stmt = select(User).options(selectinload(User.assigned_school)).order_by(User.created_at.desc(), User.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create_user(self, user: User) -> User:
        async with self._session_factory() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            for key, value in changes.items():
                setattr(user, key, value)
            await session.commit()
            await session.refresh(user)
            return user

    async def delete_user(self, user_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(User).where(User.id == user_id))
            await session.commit()
            return result.rowcount > 0
