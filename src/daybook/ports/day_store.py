"""Day record storage interface."""

from datetime import date
from typing import Protocol


class DayStore(Protocol):
    """Interface for reading and writing one text record per day."""

    def read(self, target_date: date) -> str:
        """Read a day's record, creating an empty one on first access."""
        ...

    def peek(self, target_date: date) -> str | None:
        """Read a day's record without creating it. Returns None if not found."""
        ...

    def write(self, target_date: date, content: str) -> None:
        """Overwrite a day's record."""
        ...

    def exists(self, target_date: date) -> bool:
        """Check if a record exists for a date."""
        ...
