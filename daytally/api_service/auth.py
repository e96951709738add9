"""
Session tokens for DayTally.

Passwords never reach this service's storage: the identity provider checks
them. A successful sign-in opens a server-side Session, and the client gets a
JWT naming that session. Logging out closes the session, which invalidates the
token even before it expires.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
import logging

from daytally.api_service.core.sessions import Session, SessionRegistry
from daytally.api_service.core.settings import settings

logger = logging.getLogger(__name__)

# Security
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token")

# Exception for unauthorized access
CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

def create_access_token(session: Session, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT naming the given session"""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": session.uid, "sid": session.session_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions

def get_current_session(
    token: str = Depends(oauth2_scheme),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Session:
    """Resolve the bearer token to an open session"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise CREDENTIALS_EXCEPTION
    uid = payload.get("sub")
    session_id = payload.get("sid")
    if uid is None or session_id is None:
        raise CREDENTIALS_EXCEPTION

    session = registry.get(session_id)
    if session is None or session.uid != uid:
        logger.info(f"Rejected token for closed or unknown session {session_id}")
        raise CREDENTIALS_EXCEPTION
    return session

def require_session(session: Session = Depends(get_current_session)) -> Session:
    """Dependency to require a signed-in session for endpoints"""
    return session
