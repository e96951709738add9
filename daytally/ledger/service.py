# daytally/ledger/service.py
"""
Activity ledger service.

Mediates every mutation of a day's ledger in the remote store and enforces the
24-hour capacity rule at write time. The capacity check works from the ledger
the caller loaded before the mutation; it does not re-read the store, so two
sessions writing the same day at once can together exceed the budget. Callers
reload the day after a successful mutation.
"""
import logging
import re
import time
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from daytally.ledger.errors import CapacityExceeded, InvalidInput
from daytally.ledger.models import (
    DAY_MINUTES,
    DEFAULT_CATEGORY,
    ActivityDraft,
    ActivityRecord,
    Category,
    DayLedger,
)
from daytally.shared.paths import activity_path, day_path

log = logging.getLogger(__name__)

DIGITS = re.compile(r"^\d+$")


def parse_duration(value: Any) -> int:
    """Accept integers or strings of decimal digits; anything else is invalid."""
    if isinstance(value, bool):
        raise InvalidInput("Please enter a valid duration")
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, str) and DIGITS.match(value.strip()):
        minutes = int(value.strip())
    else:
        raise InvalidInput("Please enter a valid duration")
    if minutes <= 0:
        raise InvalidInput("Please enter a valid duration")
    return minutes


def parse_category(value: Any) -> Category:
    if value is None or value == "":
        return DEFAULT_CATEGORY
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        allowed = ", ".join(c.value for c in Category)
        raise InvalidInput(f"Unknown category {value!r}. Choose one of: {allowed}")


def validate_draft(name: Any, category: Any, duration: Any) -> ActivityDraft:
    """Validate raw form input; raises InvalidInput before anything touches the store."""
    minutes = parse_duration(duration)
    if not isinstance(name, str) or not name.strip():
        raise InvalidInput("Activity name is required")
    try:
        return ActivityDraft(name=name.strip(), category=parse_category(category), duration=minutes)
    except ValidationError as e:
        raise InvalidInput(str(e))


def check_capacity(existing_total: int, duration: int, previous_duration: int = 0) -> None:
    """
    Reject a write that would take the day past 1440 minutes.

    `previous_duration` is the stored duration of the record being edited, so it
    does not count against itself. Exactly 1440 is allowed.
    """
    if existing_total - previous_duration + duration > DAY_MINUTES:
        raise CapacityExceeded(DAY_MINUTES - existing_total + previous_duration)


class Session(Protocol):
    """Whoever owns the ledger: a user id plus the token the store expects."""
    uid: str
    provider_token: Optional[str]


class Store(Protocol):
    def read(self, path: str, token: Optional[str] = None) -> Any: ...

    def write(self, path: str, value: Any, token: Optional[str] = None) -> None: ...

    def delete(self, path: str, token: Optional[str] = None) -> None: ...


class LedgerService:
    """Reads and mutates day ledgers for an explicitly passed session."""

    def __init__(self, store: Store):
        self.store = store

    def load_day(self, session: Session, day: str) -> DayLedger:
        """Fetch the whole day; a missing subtree is an empty ledger, not an error."""
        snapshot = self.store.read(day_path(session.uid, day), token=session.provider_token)
        ledger = DayLedger(user_id=session.uid, day=day)
        if not snapshot.exists():
            return ledger
        data = snapshot.value()
        if not isinstance(data, dict):
            log.warning(f"Ignoring malformed ledger at {snapshot.path}: expected an object")
            return ledger
        for activity_id, value in data.items():
            if not isinstance(value, dict):
                log.warning(f"Skipping malformed activity {activity_id} on {day}")
                continue
            try:
                ledger.records[activity_id] = ActivityRecord.from_store(activity_id, value)
            except ValidationError as e:
                log.warning(f"Skipping malformed activity {activity_id} on {day}: {e}")
        return ledger

    def add_or_update(
        self,
        session: Session,
        ledger: DayLedger,
        draft: ActivityDraft,
        activity_id: Optional[str] = None,
    ) -> ActivityRecord:
        """
        Create or overwrite one activity in the given day's ledger.

        Args:
            session: The signed-in session the ledger belongs to.
            ledger: The day as last loaded by the caller; its total is the
                baseline for the capacity check.
            draft: A validated activity (see validate_draft).
            activity_id: The id to edit. An id not present in the ledger takes
                the create path; None generates a new id.

        Returns:
            The record as written.

        Raises:
            CapacityExceeded: The day would exceed 1440 minutes.
            StoreError: The write failed.
        """
        existing_total = ledger.total_minutes
        previous = ledger.get(activity_id) if activity_id else None
        previous_duration = previous.duration if previous else 0
        try:
            check_capacity(existing_total, draft.duration, previous_duration)
        except CapacityExceeded as e:
            log.warning(
                f"Rejected activity for {session.uid} on {ledger.day}: "
                f"{draft.duration} min with {e.remaining_minutes} min remaining"
            )
            raise

        record = ActivityRecord(
            id=activity_id or self._new_activity_id(ledger),
            name=draft.name,
            category=draft.category,
            duration=draft.duration,
            timestamp=self._now_ms(),
        )
        self.store.write(
            activity_path(session.uid, ledger.day, record.id),
            record.to_store(),
            token=session.provider_token,
        )
        log.info(f"{'Updated' if previous else 'Added'} activity {record.id} for {session.uid} on {ledger.day}")
        return record

    def delete(self, session: Session, day: str, activity_id: str) -> None:
        """Remove one activity; deleting an id that is not there does nothing."""
        self.store.delete(activity_path(session.uid, day, activity_id), token=session.provider_token)
        log.info(f"Deleted activity {activity_id} for {session.uid} on {day}")

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    def _new_activity_id(self, ledger: DayLedger) -> str:
        candidate = self._now_ms()
        while str(candidate) in ledger.records:
            candidate += 1
        return str(candidate)
