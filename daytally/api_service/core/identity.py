"""
Clients for the external identity provider.

Sign-in, sign-up and Google sign-in are delegated entirely; the provider hands
back a stable uid, the email, and a token the remote store accepts.
"""
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import urlencode

import requests
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """The identity provider rejected a request; `message` is shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None


class IdentityProvider(ABC):
    name = "abstract"

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    def sign_in_with_google(self, google_id_token: str) -> Identity:
        ...

    def sign_out(self, identity: Identity) -> None:
        """Provider-side sign-out; tokens simply expire for REST clients."""
        logger.info(f"Signed out {identity.email}")


class FirebaseIdentityProvider(IdentityProvider):
    """Firebase Authentication through the Identity Toolkit REST API."""

    name = "firebase"

    def __init__(
        self,
        api_key: str,
        auth_url: str = "https://identitytoolkit.googleapis.com/v1",
        request_uri: str = "http://localhost",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("FIREBASE_API_KEY must be set to use the firebase identity provider")
        self.api_key = api_key
        self.auth_url = auth_url.rstrip("/")
        self.request_uri = request_uri
        self.timeout = timeout
        self.http = session or requests.Session()

    def _post(self, action: str, payload: dict) -> dict:
        url = f"{self.auth_url}/accounts:{action}"
        try:
            response = self.http.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Identity provider call {action} failed: {e}")
            raise AuthError("Unable to reach the sign-in service. Please try again.") from e
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            message = body.get("error", {}).get("message") or f"Authentication failed ({response.status_code})"
            logger.warning(f"Identity provider rejected {action}: {message}")
            raise AuthError(message)
        return body

    @staticmethod
    def _to_identity(body: dict) -> Identity:
        return Identity(
            uid=body["localId"],
            email=body.get("email", ""),
            id_token=body.get("idToken"),
            refresh_token=body.get("refreshToken"),
        )

    def sign_in(self, email: str, password: str) -> Identity:
        body = self._post("signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})
        return self._to_identity(body)

    def sign_up(self, email: str, password: str) -> Identity:
        body = self._post("signUp", {"email": email, "password": password, "returnSecureToken": True})
        return self._to_identity(body)

    def sign_in_with_google(self, google_id_token: str) -> Identity:
        body = self._post("signInWithIdp", {
            "postBody": urlencode({"id_token": google_id_token, "providerId": "google.com"}),
            "requestUri": self.request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        })
        return self._to_identity(body)


class MemoryIdentityProvider(IdentityProvider):
    """
    Local stand-in for the hosted provider, used in development and tests.

    Error messages mirror the hosted provider's codes so clients see the same
    text in both setups. Google sign-in accepts the token value as the email.
    """

    name = "memory"

    def __init__(self):
        self.pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
        self._users: Dict[str, Tuple[str, Optional[str]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _normalise(email: str) -> str:
        return (email or "").strip().lower()

    def _issue(self, uid: str, email: str) -> Identity:
        return Identity(uid=uid, email=email, id_token=uuid.uuid4().hex, refresh_token=uuid.uuid4().hex)

    def sign_up(self, email: str, password: str) -> Identity:
        email = self._normalise(email)
        if not email:
            raise AuthError("MISSING_EMAIL")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"WEAK_PASSWORD : Password should be at least {MIN_PASSWORD_LENGTH} characters")
        with self._lock:
            if email in self._users:
                raise AuthError("EMAIL_EXISTS")
            uid = uuid.uuid4().hex
            self._users[email] = (uid, self.pwd_context.hash(password))
        logger.info(f"Created account for {email}")
        return self._issue(uid, email)

    def sign_in(self, email: str, password: str) -> Identity:
        email = self._normalise(email)
        if not email:
            raise AuthError("MISSING_EMAIL")
        with self._lock:
            account = self._users.get(email)
        if account is None:
            raise AuthError("EMAIL_NOT_FOUND")
        uid, hashed_password = account
        if hashed_password is None or not self.pwd_context.verify(password or "", hashed_password):
            raise AuthError("INVALID_PASSWORD")
        return self._issue(uid, email)

    def sign_in_with_google(self, google_id_token: str) -> Identity:
        email = self._normalise(google_id_token)
        if not email:
            raise AuthError("INVALID_IDP_RESPONSE")
        with self._lock:
            account = self._users.get(email)
            if account is None:
                account = (uuid.uuid4().hex, None)
                self._users[email] = account
        return self._issue(account[0], email)
