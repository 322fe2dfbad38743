"""Seed the database with the school directory and a superadmin account.

Reads the directory CSV exported by the education office (one row per school
with columns ``name,lat,lng,status,npsn,bentuk,telp,alamat,kelurahan,kecamatan``),
maps rows to the School model, and upserts them by NPSN.  A superadmin account
is created if none with the configured email exists.

Usage::

    python -m src.db.seed --csv data/seeds/schools.csv
"""

from __future__ import annotations

import argparse
import math
import sys
import uuid
from pathlib import Path

import polars as pl
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from src.db.models import Base, Role, School, User
from src.services.nearby import coordinates_in_range

DEFAULT_DB_PATH = Path("data/sekolah.db")
DEFAULT_CSV_PATH = Path("data/seeds/schools.csv")
DEFAULT_SUPERADMIN_EMAIL = "superadmin@mail.com"

TEXT_COLUMNS = ("status", "npsn", "bentuk", "telp", "alamat", "kelurahan", "kecamatan")


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_coordinate(value: object) -> float | None:
    text = _clean(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def read_directory_csv(csv_path: Path) -> pl.DataFrame:
    """Load the directory CSV with every column as text."""
    return pl.read_csv(csv_path, encoding="utf8-lossy", infer_schema_length=0)


def row_to_school(row: dict[str, object]) -> School | None:
    """Map a CSV row to a :class:`School`, or ``None`` for rows without a name.

    A school keeps coordinates only when both ``lat`` and ``lng`` parse to
    finite values within latitude/longitude bounds.
    """
    name = _clean(row.get("name"))
    if name is None:
        return None

    lat = _parse_coordinate(row.get("lat"))
    lng = _parse_coordinate(row.get("lng"))
    if not coordinates_in_range(lat, lng):
        lat = lng = None

    fields = {column: _clean(row.get(column)) for column in TEXT_COLUMNS}
    return School(name=name, lat=lat, lng=lng, contact=fields["telp"], **fields)


def upsert_schools(session: Session, schools: list[School]) -> tuple[int, int]:
    """Insert new schools and update directory fields of existing ones (matched by NPSN).

    Enrichment fields maintained by school admins are never overwritten.
    Returns ``(inserted, updated)`` counts.
    """
    inserted = 0
    updated = 0

    for school in schools:
        existing = None
        if school.npsn:
            existing = session.execute(select(School).where(School.npsn == school.npsn)).scalars().first()
        if existing is None:
            session.add(school)
            inserted += 1
            continue

        existing.name = school.name
        existing.lat = school.lat
        existing.lng = school.lng
        for column in TEXT_COLUMNS:
            setattr(existing, column, getattr(school, column))
        updated += 1

    session.commit()
    return inserted, updated


def ensure_superadmin(session: Session, email: str) -> bool:
    """Create the superadmin account if it does not exist.  Returns True when created."""
    existing = session.execute(select(User).where(User.email == email)).scalars().first()
    if existing is not None:
        return False
    session.add(User(id=str(uuid.uuid4()), email=email, name="Super-Admin", role=Role.SUPERADMIN.value))
    session.commit()
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m src.db.seed",
        description="Seed the school directory and superadmin account.",
    )
    parser.add_argument("--csv", type=Path, default=DEFAULT_CSV_PATH, help="Directory CSV to import.")
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"Path to the SQLite database file (default: {DEFAULT_DB_PATH}).",
    )
    parser.add_argument("--superadmin-email", default=DEFAULT_SUPERADMIN_EMAIL)
    parser.add_argument(
        "--skip-schools", action="store_true", default=False, help="Only create the superadmin account."
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the seed script."""
    args = parse_args(argv)
    db_path: Path = args.db

    args.db.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        print(f"[1/2] Superadmin ({args.superadmin_email}) ...")
        if ensure_superadmin(session, args.superadmin_email):
            print("  Created.")
        else:
            print("  Already exists.")

        if args.skip_schools:
            print("[2/2] Skipping schools.")
            return

        print(f"[2/2] Schools from {args.csv} ...")
        if not args.csv.exists():
            print(f"  CSV file not found: {args.csv}", file=sys.stderr)
            sys.exit(1)

        frame = read_directory_csv(args.csv)
        schools = [s for s in (row_to_school(row) for row in frame.iter_rows(named=True)) if s is not None]
        geo_count = sum(1 for s in schools if s.lat is not None)
        print(f"  Rows: {frame.height}  schools: {len(schools)}  with coordinates: {geo_count}")

        inserted, updated = upsert_schools(session, schools)
        total = session.execute(select(func.count(School.id))).scalar_one()
        print(f"  Inserted: {inserted}")
        print(f"  Updated : {updated}")
        print(f"  Total schools in DB: {total}")

    print()
    print("Done.")


if __name__ == "__main__":
    main()
