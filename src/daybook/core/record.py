"""Day record text format - parse and serialize, no I/O.

A record is a sequence of blank-line separated blocks:

    Activity: 09:30 | Title here [x]
    - [x] Task one
    - [ ] Task two

    RecurringOverride: rec_123 [x]
    - [ ] Added only for this day
    ItemState: rec_123|tplItem_0|x

Unrecognized lines are skipped so hand-edited files still load.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from .recurrence import parse_time_str

ACTIVITY_PREFIX = "Activity:"
OVERRIDE_PREFIX = "RecurringOverride:"
ITEM_STATE_PREFIX = "ItemState:"

_DONE_SUFFIX = re.compile(r"\s*\[x\]$")
_DONE_SUFFIXES = re.compile(r"(\s*\[x\])+$")
_ITEM_MARKER = re.compile(r"-\s*\[(x| )\]\s?")
_LOOSE_TIME = re.compile(r"^(\d):([0-5]\d)$")


@dataclass
class ChecklistItem:
    """A checklist entry. key is set only for items defined by a template."""

    text: str
    done: bool = False
    key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "done": self.done}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChecklistItem":
        return cls(text=str(data.get("text", "")), done=bool(data.get("done", False)))


@dataclass
class Activity:
    """A one-off activity owned by a single day's record."""

    id: str
    title: str
    time: str = ""
    items: list[ChecklistItem] = field(default_factory=list)
    done: bool = False


@dataclass
class DayOverride:
    """Per-day state of one recurring template's instance."""

    done: bool = False
    item_state: dict[str, bool] = field(default_factory=dict)
    item_overrides: list[ChecklistItem] = field(default_factory=list)

    def is_default(self) -> bool:
        return not self.done and not self.item_state and not self.item_overrides

    def to_dict(self) -> dict[str, Any]:
        return {
            "done": self.done,
            "itemState": dict(self.item_state),
            "itemOverrides": [item.to_dict() for item in self.item_overrides],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DayOverride":
        return cls(
            done=bool(data.get("done", False)),
            item_state={str(k): bool(v) for k, v in (data.get("itemState") or {}).items()},
            item_overrides=[ChecklistItem.from_dict(i) for i in data.get("itemOverrides") or []],
        )


def activity_id(position: int) -> str:
    """Id for the one-off activity at a 1-based position in the record."""
    return f"a{position}"


def next_activity_id(activities: list[Activity]) -> str:
    """Next unused activity id."""
    used = set()
    for act in activities:
        if act.id.startswith("a") and act.id[1:].isdigit():
            used.add(int(act.id[1:]))
    return activity_id(max(used, default=0) + 1)


def clean_title(title: str) -> str:
    """Strip surrounding space and trailing [x] markers, which would read back as done."""
    return _DONE_SUFFIXES.sub("", title.strip()).strip()


def _split_done(payload: str) -> tuple[str, bool]:
    """Strip a trailing [x] marker from a header payload."""
    if payload.endswith("[x]"):
        return _DONE_SUFFIX.sub("", payload), True
    return payload, False


def _parse_time(value: str) -> str:
    """Zero-pad a hand-written H:MM time; "" if value is not a time."""
    value = _LOOSE_TIME.sub(r"0\1:\2", value.strip())
    return parse_time_str(value)


def _split_header(payload: str) -> tuple[str, str]:
    """(time, title) of an Activity header. A head that is not a time stays in the title."""
    head, sep, rest = payload.partition("|")
    if not sep:
        return "", payload
    if not head.strip():
        return "", rest.strip()
    time = _parse_time(head)
    if not time:
        return "", payload
    return time, rest.strip()


def _parse_item(line: str) -> ChecklistItem:
    match = _ITEM_MARKER.match(line)
    if match is None:
        return ChecklistItem(text=line[1:].strip())
    return ChecklistItem(text=line[match.end():], done=match.group(1) == "x")


def parse_day(text: str) -> tuple[list[Activity], dict[str, DayOverride]]:
    """
    Parse a day record.

    Pure function - no I/O.

    Returns:
        (one-off activities in file order, overrides keyed by template id)
    """
    activities: list[Activity] = []
    overrides: dict[str, DayOverride] = {}
    current: Activity | None = None
    current_override: DayOverride | None = None

    def flush() -> None:
        nonlocal current
        if current is not None:
            activities.append(current)
            current = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        if line.startswith(ACTIVITY_PREFIX):
            flush()
            payload, done = _split_done(line[len(ACTIVITY_PREFIX):].strip())
            time, title = _split_header(payload)
            current = Activity(
                id=activity_id(len(activities) + 1),
                title=title,
                time=time,
                done=done,
            )
            current_override = None
            continue

        if line.startswith(OVERRIDE_PREFIX):
            flush()
            template_id, done = _split_done(line[len(OVERRIDE_PREFIX):].strip())
            # ItemState lines may precede their header; keep what they set.
            current_override = overrides.setdefault(template_id, DayOverride())
            current_override.done = done
            continue

        if line.startswith("-"):
            item = _parse_item(line)
            if current is not None:
                current.items.append(item)
            elif current_override is not None:
                current_override.item_overrides.append(item)
            continue

        if line.startswith(ITEM_STATE_PREFIX):
            parts = line[len(ITEM_STATE_PREFIX):].strip().split("|")
            if len(parts) < 3:
                continue
            template_id, key, state = parts[0].strip(), parts[1].strip(), parts[2]
            override = overrides.setdefault(template_id, DayOverride())
            override.item_state[key] = state.strip() == "x"
            continue

    flush()
    return activities, overrides


def _format_item(item: ChecklistItem) -> str:
    return f"- [{'x' if item.done else ' '}] {item.text}"


def serialize_day(activities: list[Activity], overrides: dict[str, DayOverride]) -> str:
    """
    Serialize one-off activities and overrides to record text.

    Pure function - no I/O. Overrides with default state are omitted.
    """
    lines: list[str] = []

    for act in activities:
        if act.time:
            head = f"{act.time} | {act.title}"
        elif "|" in act.title:
            # Empty time slot so the title is not read back as "time | title".
            head = f" | {act.title}"
        else:
            head = act.title
        lines.append(f"{ACTIVITY_PREFIX} {head}{' [x]' if act.done else ''}")
        lines.extend(_format_item(item) for item in act.items)
        lines.append("")

    for template_id, ov in overrides.items():
        if ov.is_default():
            continue
        lines.append(f"{OVERRIDE_PREFIX} {template_id}{' [x]' if ov.done else ''}")
        lines.extend(_format_item(item) for item in ov.item_overrides)
        for key, state in ov.item_state.items():
            lines.append(f"{ITEM_STATE_PREFIX} {template_id}|{key}|{'x' if state else ' '}")
        lines.append("")

    return "\n".join(lines).strip() + "\n"
