"""
Server-side sessions.

A session is opened when the identity provider accepts a sign-in or sign-up and
closed on logout. Ledger operations receive the session explicitly; nothing
reads a process-wide "current user".
"""
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from daytally.api_service.core.identity import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    session_id: str
    uid: str
    email: str
    provider_token: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def identity(self) -> Identity:
        return Identity(uid=self.uid, email=self.email, id_token=self.provider_token)


class SessionRegistry:
    """Open sessions keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def open(self, identity: Identity) -> Session:
        session = Session(
            session_id=uuid.uuid4().hex,
            uid=identity.uid,
            email=identity.email,
            provider_token=identity.id_token,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info(f"Opened session {session.session_id} for {session.email}")
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def close(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session:
            logger.info(f"Closed session {session_id} for {session.email}")
        return session

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
