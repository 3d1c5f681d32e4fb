#!/usr/bin/env python3
"""Seed the case map database with demo hotels, constructions and cases.

Usage:
    python scripts/seed_demo_data.py --owner 005XXXXXXXXXXXX
"""

import argparse
import os
import sys
from datetime import datetime, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Case, Construction, Hotel, SessionLocal, init_db  # noqa: E402

DEMO_HOTELS = [
    ("H001", "Grand Seoul Hotel", "02-123-4567", "Jung-gu, Seoul", 37.5665, 126.9780),
    ("H002", "Pangyo Business Inn", None, "Bundang-gu, Seongnam", 37.3947, 127.1112),
    ("H003", "Suwon Station Stay", "031-222-3333", "Paldal-gu, Suwon", 37.2659, 127.0000),
    ("H004", "Unmapped Lodge", "02-999-0000", "Address pending", None, None),
]

DEMO_CASES = [
    # id, hotel, subject, delay, category, phase, progress
    ("C001", "H001", "Water leak in lobby ceiling", 5, "Plumbing", "Interior", 60),
    ("C002", "H002", "Elevator permit missing", 1, "Permits", "Structure", 35),
    ("C003", "H003", "Paint colour mismatch", 0, "Finishing", "Finishing", 90),
    ("C004", "H004", "Foundation crack report", 4, "Structure", "Foundation", 10),
    ("C005", "H001", "Fire door delivery late", None, "Supply", "Interior", 60),
]


def seed(db, owner: str) -> int:
    """Insert the demo rows for an owner, skipping ids that already exist.

    Args:
        db: SQLAlchemy session.
        owner: Owner id assigned to every demo case.

    Returns:
        Number of cases inserted.
    """
    progress_by_hotel = {}
    for _, hotel_id, _, _, _, phase, progress in DEMO_CASES:
        progress_by_hotel.setdefault(hotel_id, (phase, progress))

    for hotel_id, name, phone, address, lat, lng in DEMO_HOTELS:
        if db.get(Hotel, hotel_id) is None:
            phase, progress = progress_by_hotel.get(hotel_id, (None, None))
            db.add(Hotel(id=hotel_id, name=name, phone=phone, address=address, latitude=lat, longitude=lng))
            db.add(Construction(id=f"K{hotel_id[1:]}", hotel_id=hotel_id, phase=phase, progress=progress))

    inserted = 0
    now = datetime.utcnow()
    for index, (case_id, hotel_id, subject, delay, category, _, _) in enumerate(DEMO_CASES):
        if db.get(Case, case_id) is not None:
            continue
        construction_id = f"K{hotel_id[1:]}"
        db.add(
            Case(
                id=case_id,
                case_number=f"{1000 + index:08d}",
                subject=subject,
                status="New",
                priority="High" if (delay or 0) >= 3 else "Medium",
                estimated_delay=delay,
                issue_type="Construction Problem",
                issue_category=category,
                owner_id=owner,
                created_date=now - timedelta(days=index),
                construction_id=construction_id,
            )
        )
        inserted += 1

    db.commit()
    return inserted


def main():
    parser = argparse.ArgumentParser(description="Seed demo case map data")
    parser.add_argument("--owner", default=os.getenv("CASE_MAP_DEFAULT_USER", "anonymous"))
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        count = seed(db, args.owner)
    finally:
        db.close()
    print(f"Inserted {count} demo cases for {args.owner}")


if __name__ == "__main__":
    main()
