"""Recurring templates and the rule deciding when they fire - no I/O."""

import re
import time as _time
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from daybook.errors import TemplateValidationError

from .dates import DateLike, days_between, js_weekday, months_between, to_date, weeks_between

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class RecurrenceType(Enum):
    """Known recurrence kinds. Anything else stored on disk never fires."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class Recurrence:
    """How often a template repeats."""

    type: str = RecurrenceType.WEEKLY.value
    interval: int = 1
    days_of_week: list[int] | None = None
    days_of_month: list[int] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "interval": self.interval}
        if self.days_of_week:
            data["daysOfWeek"] = list(self.days_of_week)
        if self.days_of_month:
            data["daysOfMonth"] = list(self.days_of_month)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recurrence":
        days_of_week = data.get("daysOfWeek")
        if days_of_week is None and data.get("dayOfWeek") is not None:
            days_of_week = [data["dayOfWeek"]]
        days_of_month = data.get("daysOfMonth")
        if days_of_month is None and data.get("dayOfMonth") is not None:
            days_of_month = [data["dayOfMonth"]]
        return cls(
            type=str(data.get("type") or RecurrenceType.WEEKLY.value),
            interval=_to_int(data.get("interval"), 1),
            days_of_week=[int(d) for d in days_of_week] if days_of_week else None,
            days_of_month=[int(d) for d in days_of_month] if days_of_month else None,
        )


@dataclass
class TemplateItem:
    """A checklist item defined on a template, shared by every instance."""

    text: str
    id: str | None = None

    def key(self, index: int) -> str:
        """Stable key used by per-day item state."""
        return self.id or f"tplItem_{index}"


@dataclass
class RecurringTemplate:
    """A recurring event definition, independent of any day."""

    id: str
    title: str
    recurrence: Recurrence = field(default_factory=Recurrence)
    time: str = ""
    items: list[TemplateItem] = field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None

    def item_keys(self) -> list[str]:
        return [item.key(i) for i, item in enumerate(self.items)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape stored in recurring.json."""
        return {
            "id": self.id,
            "title": self.title,
            "time": self.time,
            "items": [{"id": item.id, "text": item.text} for item in self.items],
            "recurrence": self.recurrence.to_dict(),
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecurringTemplate":
        return normalize_template(data)


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_optional_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return to_date(value)
    except (TypeError, ValueError):
        return None


def _record_safe(value: str) -> str:
    """Ids are written into "ItemState: id|key|x" lines, so they cannot hold a pipe."""
    return str(value).strip().replace("|", "_")


def _slug(title: str) -> str:
    return re.sub(r"\s+", "_", (title or "untitled").lower())


def new_template_id() -> str:
    """Generate an id for a newly created template."""
    return f"rec_{int(_time.time() * 1000)}"


def parse_time_str(value: str | None) -> str:
    """Return value if it is a valid HH:MM time, else an empty string."""
    if not value:
        return ""
    value = value.strip()
    return value if _TIME_PATTERN.match(value) else ""


def normalize_template(raw: dict[str, Any], index: int = 0) -> RecurringTemplate:
    """
    Build a canonical template from a stored record.

    Handles the legacy flat shape ({type, interval, dayOfWeek, dayOfMonth}
    at the top level), string items, and records without an id.
    """
    title = raw.get("title") or ""
    template_id = _record_safe(raw.get("id") or f"rec_{index}_{_slug(title or 'untitled')}")

    if isinstance(raw.get("recurrence"), dict):
        recurrence = Recurrence.from_dict(raw["recurrence"])
    else:
        recurrence = Recurrence.from_dict(
            {
                "type": raw.get("type") or RecurrenceType.WEEKLY.value,
                "interval": raw.get("interval") or 1,
                "dayOfWeek": raw.get("dayOfWeek"),
                "dayOfMonth": raw.get("dayOfMonth"),
            }
        )

    items = []
    for item in raw.get("items") or []:
        if isinstance(item, str):
            items.append(TemplateItem(text=item))
        elif isinstance(item, dict):
            item_id = _record_safe(item["id"]) if item.get("id") else None
            items.append(TemplateItem(text=item.get("text") or "", id=item_id or None))

    return RecurringTemplate(
        id=template_id,
        title=title,
        recurrence=recurrence,
        time=parse_time_str(raw.get("time")),
        items=items,
        start_date=_to_optional_date(raw.get("startDate")),
        end_date=_to_optional_date(raw.get("endDate")),
    )


def validate_template(template: RecurringTemplate) -> None:
    """Raise TemplateValidationError if the template cannot be saved."""
    if not template.title.strip():
        raise TemplateValidationError("Title is required.")

    rec = template.recurrence
    if rec.interval < 1:
        raise TemplateValidationError("Interval must be at least 1.")

    match rec.type:
        case RecurrenceType.WEEKLY.value:
            if not rec.days_of_week:
                raise TemplateValidationError("For weekly events, select at least one day of week.")
            if any(d < 0 or d > 6 for d in rec.days_of_week):
                raise TemplateValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday).")
        case RecurrenceType.MONTHLY.value:
            if not rec.days_of_month:
                raise TemplateValidationError("For monthly events, select at least one day of month.")
            if any(d < 1 or d > 31 for d in rec.days_of_month):
                raise TemplateValidationError("Days of month must be between 1 and 31.")
        case RecurrenceType.DAILY.value:
            pass
        case _:
            raise TemplateValidationError(f"Unknown recurrence type: {rec.type}")

    # Without an anchor the interval phase depends on the queried date.
    if rec.interval > 1 and template.start_date is None:
        raise TemplateValidationError("A start date is required when the interval is greater than 1.")

    if template.start_date and template.end_date and template.end_date < template.start_date:
        raise TemplateValidationError("End date must not be before start date.")


def applies_on_date(template: RecurringTemplate | None, target: DateLike) -> bool:
    """
    Decide whether a template fires on a date.

    Pure function - no I/O. Unknown recurrence types never fire.
    """
    if template is None:
        return False

    d = to_date(target)
    start = template.start_date
    end = template.end_date

    if start and d < start:
        return False
    if end and d > end:
        return False

    rec = template.recurrence
    interval = max(1, rec.interval or 1)
    anchor = start or d

    match rec.type:
        case RecurrenceType.DAILY.value:
            return days_between(anchor, d) % interval == 0
        case RecurrenceType.WEEKLY.value:
            if js_weekday(d) not in (rec.days_of_week or []):
                return False
            return weeks_between(anchor, d) % interval == 0
        case RecurrenceType.MONTHLY.value:
            if d.day not in (rec.days_of_month or []):
                return False
            return months_between(anchor, d) % interval == 0
        case _:
            return False


def templates_for_date(templates: list[RecurringTemplate], target: DateLike) -> list[RecurringTemplate]:
    """Templates that fire on a date, in list order."""
    return [t for t in templates if t.id and applies_on_date(t, target)]
