from typing import Annotated
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from daytally.api_service.auth import create_access_token, get_session_registry, require_session
from daytally.api_service.api_v1.deps import get_identity_provider
from daytally.api_service.core.identity import AuthError, Identity, IdentityProvider
from daytally.api_service.core.sessions import Session, SessionRegistry
from daytally.api_service import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

IdentityDep = Annotated[IdentityProvider, Depends(get_identity_provider)]
RegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]

def start_session(registry: SessionRegistry, identity: Identity) -> schemas.Token:
    session = registry.open(identity)
    return schemas.Token(
        access_token=create_access_token(session),
        uid=session.uid,
        email=session.email,
    )

@router.post("/signup", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def signup(signup_in: schemas.SignupRequest, identity: IdentityDep, registry: RegistryDep):
    """Create an account with the identity provider and sign in"""
    if signup_in.confirm_password is not None and signup_in.confirm_password != signup_in.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Passwords do not match")
    try:
        user = identity.sign_up(signup_in.email, signup_in.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return start_session(registry, user)

@router.post("/token", response_model=schemas.Token)
def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    identity: IdentityDep,
    registry: RegistryDep,
):
    """Sign in with email (as username) and password"""
    try:
        user = identity.sign_in(form_data.username, form_data.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return start_session(registry, user)

@router.post("/google", response_model=schemas.Token)
def login_with_google(google_in: schemas.GoogleLoginRequest, identity: IdentityDep, registry: RegistryDep):
    """Sign in with a Google ID token"""
    try:
        user = identity.sign_in_with_google(google_in.id_token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return start_session(registry, user)

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    identity: IdentityDep,
    registry: RegistryDep,
    session: Session = Depends(require_session),
):
    """Close the current session; its token stops working immediately"""
    try:
        identity.sign_out(session.identity)
    except AuthError as e:
        logger.error(f"Provider sign-out failed for {session.email}: {e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    registry.close(session.session_id)
    return None

@router.get("/me", response_model=schemas.CurrentUser)
def read_current_user(session: Session = Depends(require_session)):
    """Get current user info"""
    return schemas.CurrentUser(uid=session.uid, email=session.email)
