"""Shared pytest fixtures for the sekolah-review test suite."""

from __future__ import annotations

import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from src.config import get_settings
from src.db.base import SchoolRepository
from src.db.factory import get_school_repository
from src.db.models import Base, Review, School, User
from src.db.sqlite_repo import SQLiteSchoolRepository
from src.main import app

# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------

BANDUNG = (-6.914744, 107.60981)


def _create_test_schools() -> list[School]:
    """Return a fresh list of Bandung school records with varying profile completeness."""
    return [
        School(
            id=1,
            name="SMA Negeri 3 Bandung",
            npsn="20219161",
            status="NEGERI",
            bentuk="SMA",
            alamat="Jl. Belitung No. 8",
            kelurahan="Merdeka",
            kecamatan="Sumur Bandung",
            lat=BANDUNG[0],
            lng=BANDUNG[1],
            description="Sekolah menengah atas negeri.",
            programs="IPA, IPS",
            achievements="Juara olimpiade sains",
            website="https://sman3bdg.sch.id",
        ),
        School(
            id=2,
            name="SMP Negeri 5 Bandung",
            npsn="20219202",
            status="NEGERI",
            bentuk="SMP",
            alamat="Jl. Sumatera No. 40",
            kecamatan="Sumur Bandung",
            lat=-6.9100,
            lng=107.6150,
            description="Sekolah menengah pertama.",
            programs="Pramuka",
            achievements="   ",
        ),
        School(
            id=3,
            name="SD Negeri Merdeka",
            npsn="20219303",
            status="NEGERI",
            bentuk="SD",
            kecamatan="Coblong",
            lat=-6.8900,
            lng=107.6100,
        ),
        School(
            id=4,
            name="SMK Tanpa Koordinat",
            npsn="20219404",
            status="SWASTA",
            bentuk="SMK",
            kecamatan="Coblong",
            lat=None,
            lng=None,
        ),
    ]


def _create_test_users() -> list[User]:
    return [
        User(id="u-super", name="Super-Admin", email="superadmin@mail.com", role="SUPERADMIN"),
        User(id="u-admin1", name="Admin SMA 3", email="admin1@mail.com", role="SCHOOL_ADMIN", assigned_school_id=1),
        User(id="u-admin3", name="Admin SD", email="admin3@mail.com", role="SCHOOL_ADMIN", assigned_school_id=3),
        User(id="u-orphan", name="Orphan Admin", email="orphan@mail.com", role="SCHOOL_ADMIN", assigned_school_id=999),
        User(id="u-alice", name="Alice", email="alice@mail.com", role="USER"),
        User(id="u-bob", name="Bob", email="bob@mail.com", role="USER"),
        User(id="u-carol", name="Carol", email="carol@mail.com", role="USER"),
        User(id="u-guest", name="Guest", email="guest@mail.com", role="GUEST"),
    ]


def _create_test_reviews() -> list[Review]:
    """Alice loves SMA 3, Bob does not; Alice also reviewed SMP 5."""
    return [
        Review(
            id=1,
            school_id=1,
            user_id="u-alice",
            kenyamanan=5,
            pembelajaran=5,
            fasilitas=5,
            kepemimpinan=5,
            komentar="Luar biasa",
            created_at=datetime.datetime(2024, 1, 1, 9, 0),
        ),
        Review(
            id=2,
            school_id=1,
            user_id="u-bob",
            kenyamanan=1,
            pembelajaran=1,
            fasilitas=1,
            kepemimpinan=1,
            komentar="Kurang",
            created_at=datetime.datetime(2024, 1, 2, 9, 0),
        ),
        Review(
            id=3,
            school_id=2,
            user_id="u-alice",
            kenyamanan=4,
            pembelajaran=3,
            fasilitas=4,
            kepemimpinan=5,
            created_at=datetime.datetime(2024, 1, 3, 9, 0),
        ),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path) -> str:
    """Create a temporary SQLite database seeded with test data and return its path."""
    path = str(tmp_path / "test_sekolah.db")
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    with Session(sync_engine) as session:
        session.add_all(_create_test_schools())
        session.flush()
        session.add_all(_create_test_users())
        session.flush()
        session.add_all(_create_test_reviews())
        session.commit()

    sync_engine.dispose()
    return path


@pytest.fixture()
def test_repo(db_path) -> SQLiteSchoolRepository:
    """Return an async :class:`SQLiteSchoolRepository` backed by the test database."""
    return SQLiteSchoolRepository(db_path)


@pytest.fixture()
def test_client(db_path, monkeypatch) -> TestClient:
    """Return a FastAPI ``TestClient`` wired to the test database."""
    monkeypatch.setenv("SQLITE_PATH", db_path)
    get_settings.cache_clear()
    repo = SQLiteSchoolRepository(db_path)

    def _override() -> SchoolRepository:
        return repo

    app.dependency_overrides[get_school_repository] = _override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    get_settings.cache_clear()

