"""
Shared fixtures: an in-memory database per test and a case factory.
"""

import os
import sys
from datetime import datetime, timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from case_service import ISSUE_TYPE
from database import Base, Case, Construction, Hotel

BASE_TIME = datetime(2025, 6, 1, 9, 0, 0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_case(db):
    """Insert a case with its own hotel and construction.

    Every keyword has a default that makes the case visible on the map of
    user U1.
    """

    def _make_case(
        case_id,
        delay=0,
        owner="U1",
        status="New",
        issue_type=ISSUE_TYPE,
        created_offset_hours=0,
        lat=37.5,
        lng=127.0,
        phone="02-000-0000",
        with_construction=True,
        with_hotel=True,
    ):
        construction_id = None
        if with_construction:
            hotel_id = None
            if with_hotel:
                hotel_id = f"H-{case_id}"
                db.add(
                    Hotel(
                        id=hotel_id,
                        name=f"Hotel {case_id}",
                        phone=phone,
                        address=f"{case_id} Street",
                        latitude=lat,
                        longitude=lng,
                    )
                )
            construction_id = f"K-{case_id}"
            db.add(Construction(id=construction_id, hotel_id=hotel_id, phase="Interior", progress=40))

        db.add(
            Case(
                id=case_id,
                case_number=f"000{case_id}",
                subject=f"Problem at {case_id}",
                status=status,
                priority="High",
                estimated_delay=delay,
                issue_type=issue_type,
                issue_category="Plumbing",
                owner_id=owner,
                created_date=BASE_TIME + timedelta(hours=created_offset_hours),
                construction_id=construction_id,
            )
        )
        db.commit()

    return _make_case
