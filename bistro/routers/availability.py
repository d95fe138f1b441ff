# bistro/routers/availability.py
"""
Reservation availability.

GET /availability?date=YYYY-MM-DD → {date, slots: [{time, available, remainingCapacity}]}
"""

import logging
import re
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..schemas.reservations import AvailabilityResponse, AvailabilitySlot
from ..services.errors import BistroError, ErrorCode
from ..services.slots import calculate_availability
from .errors import http_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability"])

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    date_str: str | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    if not date_str:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": ErrorCode.VALIDATION_ERROR.value, "message": "Date parameter is required"},
        )

    try:
        if not DATE_RE.match(date_str):
            raise ValueError(date_str)
        target_date = date.fromisoformat(date_str)
    except ValueError:
        logger.warning(f"Invalid availability date: {date_str!r}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Invalid date format. Expected YYYY-MM-DD",
            },
        )

    try:
        result = calculate_availability(db, target_date, now)
    except BistroError as e:
        logger.error(f"Availability failed for {date_str}: {e.message}")
        raise http_error(e)

    return AvailabilityResponse(
        date=result["date"],
        message=result["message"],
        slots=[
            AvailabilitySlot(
                time=slot.time,
                available=slot.available,
                remainingCapacity=max(slot.remaining_capacity or 0, 0),
            )
            for slot in result["slots"]
        ],
    )
