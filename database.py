"""Database setup and models for the case map.

This module provides the database connection, the hotel / construction /
case models, and the session utilities, using SQLAlchemy.
"""

import os
from datetime import datetime

from dotenv import load_dotenv
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

load_dotenv()

# Database setup
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./case_map.db")
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class Hotel(Base):
    """Physical site a case is tied to.

    Attributes:
        id: Primary key.
        name: Display name of the hotel.
        phone: Contact phone number, optional.
        address: Street address.
        latitude: Latitude, None when the site was never located.
        longitude: Longitude, None when the site was never located.
    """

    __tablename__ = "hotels"

    id = Column(String(18), primary_key=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(40), nullable=True)
    address = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    constructions = relationship("Construction", back_populates="hotel")


class Construction(Base):
    """Construction project running at a hotel."""

    __tablename__ = "constructions"

    id = Column(String(18), primary_key=True)
    hotel_id = Column(String(18), ForeignKey("hotels.id"), nullable=True, index=True)
    phase = Column(String(100), nullable=True)
    progress = Column(Float, nullable=True)

    hotel = relationship("Hotel", back_populates="constructions")
    cases = relationship("Case", back_populates="construction")


class Case(Base):
    """Service case raised against a construction.

    Attributes:
        id: Primary key.
        case_number: Human readable number (e.g. 00001024).
        status: Workflow status; "Closed" is terminal.
        estimated_delay: Estimated delay in days, None when not estimated.
        issue_type: Case type; the map only shows construction problems.
        owner_id: Identifier of the user who owns the case.
        construction_id: Construction the case belongs to.
    """

    __tablename__ = "cases"

    id = Column(String(18), primary_key=True)
    case_number = Column(String(30), nullable=False, index=True)
    subject = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(40), nullable=False, default="New", index=True)
    priority = Column(String(40), nullable=True)
    estimated_delay = Column(Float, nullable=True)
    issue_type = Column(String(80), nullable=True, index=True)
    issue_category = Column(String(80), nullable=True)
    owner_id = Column(String(100), nullable=False, index=True)
    created_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    construction_id = Column(
        String(18), ForeignKey("constructions.id"), nullable=True, index=True
    )

    construction = relationship("Construction", back_populates="cases")


def get_db():
    """Dependency for getting database session.

    Yields:
        Database session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine)
