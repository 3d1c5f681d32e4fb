"""
Case API routes.

This module exposes the case service boundary: listing the caller's open
cases and changing a case status.

Author: Case Map maintainers
Date: 2026-10-18
"""

from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from case_service import CaseRecord, CaseService
from database import get_db
from exceptions import CaseNotFoundError, CaseServiceError, InvalidStatusError
from user_context import get_current_user

router = APIRouter()


class StatusUpdate(BaseModel):
    """Request model for a case status change."""

    model_config = ConfigDict(populate_by_name=True)

    new_status: str = Field(..., alias="newStatus")


@router.get("/api/cases", response_model=List[CaseRecord])
def get_cases(db: Session = Depends(get_db), user: str = Depends(get_current_user)):
    """List the caller's open cases that can be placed on the map.

    Returns:
        Case records ordered by estimated delay, longest first.

    Raises:
        HTTPException: 500 if the store cannot be queried.
    """
    try:
        return CaseService(db).fetch_open_cases(user)
    except CaseServiceError as e:
        raise HTTPException(500, str(e))


@router.post("/api/cases/{case_id}/status")
def update_case_status(
    case_id: str,
    payload: StatusUpdate = Body(...),
    db: Session = Depends(get_db),
    user: str = Depends(get_current_user),
):
    """Change the status of one of the caller's cases.

    Args:
        case_id: Case to update.
        payload: Body with the new status; only "Closed" is accepted.

    Returns:
        Dictionary with status and case id.

    Raises:
        HTTPException: 404 if the case is not the caller's, 400 for an
            unsupported status, 500 if the store fails.
    """
    try:
        CaseService(db).update_case_status(case_id, payload.new_status, user)
    except CaseNotFoundError as e:
        raise HTTPException(404, str(e))
    except InvalidStatusError as e:
        raise HTTPException(400, str(e))
    except CaseServiceError as e:
        raise HTTPException(500, str(e))

    return {"status": "ok", "id": case_id}
