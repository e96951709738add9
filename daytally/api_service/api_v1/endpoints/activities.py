from typing import Annotated
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Path as FastAPIPath

from daytally.api_service import schemas
from daytally.api_service.auth import require_session
from daytally.api_service.api_v1.deps import get_day, get_ledger_service, store_failure
from daytally.api_service.core.sessions import Session
from daytally.api_service.core.store import StoreError
from daytally.ledger import aggregation
from daytally.ledger.errors import CapacityExceeded, InvalidInput
from daytally.ledger.models import CATEGORY_COLORS, DAY_MINUTES, DEFAULT_CATEGORY, Category, DayLedger
from daytally.ledger.service import LedgerService, validate_draft

logger = logging.getLogger(__name__)

router = APIRouter()

SessionDep = Annotated[Session, Depends(require_session)]
LedgerDep = Annotated[LedgerService, Depends(get_ledger_service)]
DayDep = Annotated[str, Depends(get_day)]
ActivityIdPath = Annotated[str, FastAPIPath(min_length=1, description="Activity id within the day.")]

def build_day_view(ledger: DayLedger) -> schemas.DayView:
    total = ledger.total_minutes
    remaining = DAY_MINUTES - total
    can_analyze = total == DAY_MINUTES
    return schemas.DayView(
        date=ledger.day,
        activities=[
            schemas.Activity(
                id=record.id,
                name=record.name,
                category=record.category,
                duration=record.duration,
                timestamp=record.timestamp,
                display=aggregation.format_duration(record.duration),
            )
            for record in ledger.activities
        ],
        total_minutes=total,
        remaining_minutes=remaining,
        total_display=aggregation.format_duration(total),
        remaining_display=aggregation.format_duration(remaining),
        progress_percent=aggregation.percentage(total),
        can_analyze=can_analyze,
        analyze_hint="Analyze Day" if can_analyze else f"Add {remaining} more minutes to analyze",
    )

def save_activity(
    ledger_service: LedgerService,
    session: Session,
    day: str,
    activity_in: schemas.ActivityIn,
    activity_id: str | None = None,
) -> schemas.DayView:
    try:
        draft = validate_draft(activity_in.name, activity_in.category, activity_in.duration)
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    try:
        ledger = ledger_service.load_day(session, day)
        ledger_service.add_or_update(session, ledger, draft, activity_id)
        # Reload so the response reflects the store, not our guess of it.
        ledger = ledger_service.load_day(session, day)
    except CapacityExceeded as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": e.message, "remaining_minutes": e.remaining_minutes},
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except StoreError as e:
        raise store_failure("save an activity", e)
    return build_day_view(ledger)

@router.get("/categories", response_model=schemas.CategoryList)
def list_categories():
    """The fixed category set, in display order, with chart colours"""
    return schemas.CategoryList(
        categories=[schemas.CategoryOption(name=c, color=CATEGORY_COLORS[c]) for c in Category],
        default=DEFAULT_CATEGORY,
    )

@router.get("", response_model=schemas.DayView)
def read_day(session: SessionDep, ledger_service: LedgerDep, day: DayDep):
    """
    Get the activities logged for a day along with the running total.
    The day comes from the `date` query parameter and defaults to today.
    """
    try:
        ledger = ledger_service.load_day(session, day)
    except StoreError as e:
        raise store_failure("load activities", e)
    return build_day_view(ledger)

@router.post("", response_model=schemas.DayView, status_code=status.HTTP_201_CREATED)
def create_activity(
    activity_in: schemas.ActivityIn,
    session: SessionDep,
    ledger_service: LedgerDep,
    day: DayDep,
):
    return save_activity(ledger_service, session, day, activity_in)

@router.put("/{activity_id}", response_model=schemas.DayView)
def update_activity(
    activity_id: ActivityIdPath,
    activity_in: schemas.ActivityIn,
    session: SessionDep,
    ledger_service: LedgerDep,
    day: DayDep,
):
    """Overwrite an activity. An id the day does not have yet is created instead."""
    return save_activity(ledger_service, session, day, activity_in, activity_id)

@router.delete("/{activity_id}", response_model=schemas.DayView)
def delete_activity(
    activity_id: ActivityIdPath,
    session: SessionDep,
    ledger_service: LedgerDep,
    day: DayDep,
):
    try:
        ledger_service.delete(session, day, activity_id)
        ledger = ledger_service.load_day(session, day)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except StoreError as e:
        raise store_failure("delete an activity", e)
    return build_day_view(ledger)
