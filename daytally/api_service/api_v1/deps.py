import logging
from typing import Optional

from fastapi import HTTPException, Query, Request, status

from daytally.api_service.core.identity import IdentityProvider
from daytally.api_service.core.settings import settings
from daytally.api_service.core.store import StoreError
from daytally.ledger.errors import InvalidInput
from daytally.ledger.service import LedgerService
from daytally.shared.utils import resolve_day

logger = logging.getLogger(__name__)

STORE_FAILURE_DETAIL = "Could not reach the activity store. Please try again."


def get_ledger_service(request: Request) -> LedgerService:
    """Dependency returning the ledger service bound to the app's store."""
    return request.app.state.ledger


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_day(
    date: Optional[str] = Query(None, description="Day in YYYY-MM-DD format. Defaults to today."),
) -> str:
    """The `date` query parameter as a ledger key."""
    try:
        return resolve_day(date, settings.LOCAL_TZ)
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


def store_failure(action: str, error: StoreError) -> HTTPException:
    logger.error(f"Store failure while trying to {action}: {error}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=STORE_FAILURE_DETAIL)
