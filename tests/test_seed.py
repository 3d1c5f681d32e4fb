"""
Tests for the demo data seeding script.

Run with: python -m pytest tests/test_seed.py
"""

from case_service import CaseService
from scripts.seed_demo_data import seed


def test_seed_is_visible_on_the_map(db):
    inserted = seed(db, "U1")

    records = CaseService(db).fetch_open_cases("U1")

    assert inserted == 5
    # C004's hotel has no coordinates
    assert [r.id for r in records] == ["C001", "C002", "C003", "C005"]
    assert records[1].phone is None
    assert records[0].construction_phase == "Interior"


def test_seed_twice_inserts_nothing(db):
    seed(db, "U1")

    assert seed(db, "U1") == 0
