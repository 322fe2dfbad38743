"""Tests for the directory CSV seed script in src.db.seed."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from src.db.models import Base, School, User
from src.db.seed import ensure_superadmin, main, read_directory_csv, row_to_school, upsert_schools

CSV_TEXT = """name,lat,lng,status,npsn,bentuk,telp,alamat,kelurahan,kecamatan
SMA Negeri 3 Bandung,-6.914744,107.60981,NEGERI,20219161,SMA,022-4231,Jl. Belitung No. 8,Merdeka,Sumur Bandung
SD Tanpa Titik,,,SWASTA,20219999,SD,,Jl. Dago,Dago,Coblong
,-6.9,107.6,NEGERI,20210000,SD,,,,
"""

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def csv_path(tmp_path):
    path = tmp_path / "schools.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture()
def session(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'seed_test.db'}")
    Base.metadata.create_all(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


class TestRowToSchool:
    def test_full_row(self, csv_path):
        rows = list(read_directory_csv(csv_path).iter_rows(named=True))
        school = row_to_school(rows[0])
        assert school.name == "SMA Negeri 3 Bandung"
        assert school.npsn == "20219161"
        assert school.lat == pytest.approx(-6.914744)
        assert school.contact == "022-4231"

    def test_missing_coordinates(self, csv_path):
        rows = list(read_directory_csv(csv_path).iter_rows(named=True))
        school = row_to_school(rows[1])
        assert school.lat is None and school.lng is None

    def test_half_pair_dropped(self):
        school = row_to_school({"name": "SD X", "lat": "-6.9", "lng": "bukan angka"})
        assert school.lat is None and school.lng is None

    @pytest.mark.parametrize(
        ("lat", "lng"),
        [("500", "107.6"), ("-6.9", "181"), ("nan", "107.6"), ("-6.9", "inf"), ("-91", "107.6")],
    )
    def test_unusable_coordinates_dropped(self, lat, lng):
        school = row_to_school({"name": "SD X", "lat": lat, "lng": lng})
        assert school.lat is None and school.lng is None

    def test_boundary_coordinates_kept(self):
        school = row_to_school({"name": "SD X", "lat": "-90", "lng": "180"})
        assert (school.lat, school.lng) == (-90.0, 180.0)

    def test_nameless_row_skipped(self, csv_path):
        rows = list(read_directory_csv(csv_path).iter_rows(named=True))
        assert row_to_school(rows[2]) is None


# ---------------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------------


class TestUpsert:
    def test_insert_then_update_keeps_enrichment(self, session):
        inserted, updated = upsert_schools(session, [School(name="SMA Lama", npsn="1", alamat="Jl. A")])
        assert (inserted, updated) == (1, 0)

        existing = session.execute(select(School).where(School.npsn == "1")).scalar_one()
        existing.description = "Diisi admin sekolah"
        session.commit()

        inserted, updated = upsert_schools(session, [School(name="SMA Baru", npsn="1", alamat="Jl. B")])
        assert (inserted, updated) == (0, 1)

        school = session.execute(select(School).where(School.npsn == "1")).scalar_one()
        assert school.name == "SMA Baru"
        assert school.alamat == "Jl. B"
        assert school.description == "Diisi admin sekolah"

    def test_superadmin_created_once(self, session):
        assert ensure_superadmin(session, "superadmin@mail.com") is True
        assert ensure_superadmin(session, "superadmin@mail.com") is False
        user = session.execute(select(User)).scalar_one()
        assert user.role == "SUPERADMIN"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestMain:
    def test_seeds_database(self, tmp_path, csv_path, capsys):
        db = tmp_path / "out" / "sekolah.db"
        main(["--csv", str(csv_path), "--db", str(db)])

        engine = create_engine(f"sqlite:///{db}")
        with Session(engine) as s:
            assert s.execute(select(func.count(School.id))).scalar_one() == 2
            assert s.execute(select(func.count(User.id))).scalar_one() == 1
        engine.dispose()
        assert "Done." in capsys.readouterr().out

    def test_missing_csv_exits(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--csv", str(tmp_path / "nope.csv"), "--db", str(tmp_path / "x.db")])
