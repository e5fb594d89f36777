"""Functional core - pure business logic with no I/O."""

from .dates import day_key, days_between, weeks_between, months_between, week_days
from .recurrence import (
    Recurrence,
    RecurrenceType,
    RecurringTemplate,
    TemplateItem,
    applies_on_date,
    normalize_template,
    validate_template,
)
from .record import Activity, ChecklistItem, DayOverride, parse_day, serialize_day
from .overrides import OverrideStore
from .merge import DayState, DisplayActivity, DisplayItem, build_display, to_record
from .reminders import Reminder, reminders_for_day

__all__ = [
    # Dates
    "day_key",
    "days_between",
    "weeks_between",
    "months_between",
    "week_days",
    # Recurrence
    "Recurrence",
    "RecurrenceType",
    "RecurringTemplate",
    "TemplateItem",
    "applies_on_date",
    "normalize_template",
    "validate_template",
    # Record
    "Activity",
    "ChecklistItem",
    "DayOverride",
    "parse_day",
    "serialize_day",
    # Overrides
    "OverrideStore",
    # Merge
    "DayState",
    "DisplayActivity",
    "DisplayItem",
    "build_display",
    "to_record",
    # Reminders
    "Reminder",
    "reminders_for_day",
]
