"""Case query and resolve service.

This module turns stored cases into flat records for the map and performs
the single mutation the map allows: closing a case owned by the caller.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from database import Case, Construction, Hotel
from exceptions import CaseNotFoundError, CaseServiceError, InvalidStatusError

LOGGER = logging.getLogger(__name__)

CASE_LIMIT = 50
ISSUE_TYPE = "Construction Problem"
CLOSED_STATUS = "Closed"


class CaseRecord(BaseModel):
    """Flat case shape handed to the map, serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    case_number: str
    subject: Optional[str] = None
    description: Optional[str] = None
    status: str
    priority: Optional[str] = None
    estimated_delay: float = 0
    issue_category: Optional[str] = None
    created_date: Optional[datetime] = None
    lat: float
    lng: float
    hotel_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    construction_phase: Optional[str] = None
    construction_progress: float = 0


def has_location(hotel: Optional[Hotel]) -> bool:
    """Return True when the hotel carries both coordinates."""
    return hotel is not None and hotel.latitude is not None and hotel.longitude is not None


def drop_unlocated(cases: Iterable[Case]) -> List[Case]:
    """Filter out cases whose hotel has no coordinates.

    A missing coordinate is a data gap, not an error, so these cases are
    skipped without raising.

    Args:
        cases: Cases joined to their construction and hotel.

    Returns:
        Cases that can be placed on the map, in their original order.
    """
    located = []
    for case in cases:
        hotel = case.construction.hotel if case.construction else None
        if has_location(hotel):
            located.append(case)
        else:
            LOGGER.debug("Skipping case %s: site has no coordinates", case.id)
    return located


def to_record(case: Case) -> CaseRecord:
    """Flatten a case and its construction / hotel into a CaseRecord."""
    construction = case.construction
    hotel = construction.hotel
    return CaseRecord(
        id=case.id,
        case_number=case.case_number,
        subject=case.subject,
        description=case.description,
        status=case.status,
        priority=case.priority,
        estimated_delay=case.estimated_delay or 0,
        issue_category=case.issue_category,
        created_date=case.created_date,
        lat=hotel.latitude,
        lng=hotel.longitude,
        hotel_name=hotel.name,
        phone=hotel.phone,
        address=hotel.address,
        construction_phase=construction.phase,
        construction_progress=construction.progress or 0,
    )


class CaseService:
    """Query and resolve cases on behalf of one user.

    Attributes:
        db: SQLAlchemy session used for every call.
    """

    def __init__(self, db: Session):
        self.db = db

    def fetch_open_cases(self, current_user_id: str) -> List[CaseRecord]:
        """Return the caller's open construction-problem cases.

        Cases are ordered by estimated delay (missing delays last), then by
        creation date, newest first. At most CASE_LIMIT cases are read; the
        ones whose hotel has no coordinates are dropped afterwards.

        Args:
            current_user_id: Owner the cases must belong to.

        Returns:
            List of CaseRecord, each with a latitude and longitude.

        Raises:
            CaseServiceError: If the store query fails.
        """
        try:
            rows = (
                self.db.query(Case)
                .join(Case.construction)
                .join(Construction.hotel)
                .options(contains_eager(Case.construction).contains_eager(Construction.hotel))
                .filter(
                    Case.owner_id == current_user_id,
                    Case.issue_type == ISSUE_TYPE,
                    Case.status != CLOSED_STATUS,
                )
                .order_by(Case.estimated_delay.desc().nulls_last(), Case.created_date.desc())
                .limit(CASE_LIMIT)
                .all()
            )
        except SQLAlchemyError as e:
            LOGGER.exception("Case query failed for user %s", current_user_id)
            raise CaseServiceError("Unable to load cases.") from e

        return [to_record(case) for case in drop_unlocated(rows)]

    def resolve_case(self, case_id: str, current_user_id: str) -> None:
        """Close a case owned by the caller.

        Args:
            case_id: Case to close.
            current_user_id: Caller; must own the case.

        Raises:
            CaseNotFoundError: If no case with this id belongs to the caller.
            CaseServiceError: If the lookup or the commit fails.
        """
        try:
            case = (
                self.db.query(Case)
                .filter(Case.id == case_id, Case.owner_id == current_user_id)
                .one_or_none()
            )
        except SQLAlchemyError as e:
            LOGGER.exception("Case lookup failed for %s", case_id)
            raise CaseServiceError("Unable to look up the case.") from e

        if case is None:
            raise CaseNotFoundError(f"Case '{case_id}' was not found for the current user.")

        case.status = CLOSED_STATUS
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            LOGGER.exception("Closing case %s failed", case_id)
            raise CaseServiceError("Unable to close the case.") from e

        LOGGER.info("Case %s closed by %s", case_id, current_user_id)

    def update_case_status(self, case_id: str, new_status: str, current_user_id: str) -> None:
        """Apply a status change requested by the map.

        Only the closed status is accepted.

        Raises:
            InvalidStatusError: If the status is not the closed status.
            CaseServiceError: If the resolve fails.
        """
        if new_status != CLOSED_STATUS:
            raise InvalidStatusError(f"Unsupported status: {new_status}")
        self.resolve_case(case_id, current_user_id)
