class LedgerError(Exception):
    """Base class for ledger rule violations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(LedgerError):
    """The submitted activity or date failed validation."""


class CapacityExceeded(LedgerError):
    """The write would push the day's total above the 24-hour budget."""

    def __init__(self, remaining_minutes: int):
        self.remaining_minutes = remaining_minutes
        super().__init__(
            f"Cannot add activity. Would exceed 24 hours. "
            f"You have {remaining_minutes} minutes remaining."
        )
