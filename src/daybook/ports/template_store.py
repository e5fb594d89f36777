"""Recurring template storage interface."""

from typing import Protocol

from daybook.core.recurrence import RecurringTemplate


class TemplateStore(Protocol):
    """Interface for the single list of recurring templates."""

    def load(self) -> list[RecurringTemplate]:
        """Load all templates. Missing or corrupt storage yields []."""
        ...

    def save(self, templates: list[RecurringTemplate]) -> None:
        """Rewrite the whole template list."""
        ...
