from __future__ import annotations

import datetime
import enum

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime.datetime:
    """Naive UTC timestamp; SQLite has no timezone-aware column type."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Async-compatible declarative base for all ORM models."""


class Role(str, enum.Enum):
    SUPERADMIN = "SUPERADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    USER = "USER"


class School(Base):
    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Directory data as published by the education office
    npsn: Mapped[str | None] = mapped_column(String(20), nullable=True)  # national school number
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)  # NEGERI / SWASTA
    bentuk: Mapped[str | None] = mapped_column(String(20), nullable=True)  # SD / SMP / SMA / SMK ...
    alamat: Mapped[str | None] = mapped_column(Text, nullable=True)
    kelurahan: Mapped[str | None] = mapped_column(String(100), nullable=True)
    kecamatan: Mapped[str | None] = mapped_column(String(100), nullable=True)
    telp: Mapped[str | None] = mapped_column(String(30), nullable=True)
    contact: Mapped[str | None] = mapped_column(String(255), nullable=True)

    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Enrichment fields maintained by the school's own admin
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    programs: Mapped[str | None] = mapped_column(Text, nullable=True)
    achievements: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    # Relationships
    reviews: Mapped[list[Review]] = relationship(
        "Review", back_populates="school", lazy="select", cascade="all, delete-orphan", passive_deletes=True
    )
    admins: Mapped[list[User]] = relationship("User", back_populates="assigned_school", lazy="select")

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name!r})>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    assigned_school_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("schools.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, index=True)

    assigned_school: Mapped[School | None] = relationship("School", back_populates="admins")
    reviews: Mapped[list[Review]] = relationship(
        "Review", back_populates="user", lazy="select", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, role={self.role!r})>"


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Four criteria, each on the 1-5 scale
    kenyamanan: Mapped[float] = mapped_column(Float, nullable=False)  # comfort
    pembelajaran: Mapped[float] = mapped_column(Float, nullable=False)  # teaching
    fasilitas: Mapped[float] = mapped_column(Float, nullable=False)  # facilities
    kepemimpinan: Mapped[float] = mapped_column(Float, nullable=False)  # leadership

    komentar: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, index=True)

    school: Mapped[School] = relationship("School", back_populates="reviews")
    user: Mapped[User] = relationship("User", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, school_id={self.school_id}, user_id={self.user_id!r})>"
