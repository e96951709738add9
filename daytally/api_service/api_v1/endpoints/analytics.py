from typing import Annotated
from fastapi import APIRouter, Depends

from daytally.api_service import schemas
from daytally.api_service.auth import require_session
from daytally.api_service.api_v1.deps import get_day, get_ledger_service, store_failure
from daytally.api_service.core.sessions import Session
from daytally.api_service.core.store import StoreError
from daytally.ledger import aggregation
from daytally.ledger.models import DAY_MINUTES
from daytally.ledger.service import LedgerService
from daytally.shared.utils import format_long_date

router = APIRouter()

def incomplete_message(day: str, total: int) -> str:
    if total == 0:
        return f"No activities logged for {format_long_date(day)}"
    return (
        f"Only {total} minutes logged. Complete 24 hours ({DAY_MINUTES} minutes) "
        f"to analyze your day."
    )

@router.get("", response_model=schemas.AnalyticsResponse)
def read_analytics(
    session: Annotated[Session, Depends(require_session)],
    ledger_service: Annotated[LedgerService, Depends(get_ledger_service)],
    day: Annotated[str, Depends(get_day)],
):
    """
    Category breakdown and chart series for a fully logged day.
    Days that do not add up to exactly 24 hours get `complete: false` and a
    message instead of a summary.
    """
    try:
        ledger = ledger_service.load_day(session, day)
    except StoreError as e:
        raise store_failure("load analytics", e)

    records = ledger.activities
    total = aggregation.total_minutes(records)
    if not aggregation.is_complete(records):
        return schemas.AnalyticsResponse(
            date=day,
            complete=False,
            total_minutes=total,
            message=incomplete_message(day, total),
        )
    return schemas.AnalyticsResponse(
        date=day,
        complete=True,
        total_minutes=total,
        summary=schemas.DaySummary(**aggregation.summarize_day(day, records)),
    )
