from fastapi import APIRouter, Depends, Request

from daytally.api_service.core.settings import settings
from daytally.api_service.auth import require_session
from daytally.api_service import schemas

router = APIRouter()

@router.get("/status", response_model=schemas.SystemStatus)
def get_system_status(request: Request, _=Depends(require_session)):
    """
    Get the current status of the service.
    Reports which backends are configured and whether the store answers.
    """
    state = request.app.state
    return schemas.SystemStatus(
        status="ok",
        version=settings.VERSION,
        store_backend=state.ledger.store.name,
        identity_backend=state.identity.name,
        store_reachable=state.ledger.store.ping(),
        open_sessions=len(state.sessions),
    )
