"""Merge one-off activities and recurring instances into one display list.

Edits never touch the display list, which is rebuilt after every change.
They go through the intent functions below, which mutate a DayState and
return True when something changed. Unknown targets return False.
"""

from dataclasses import dataclass, field

from .dates import DateLike
from .overrides import OverrideStore
from .record import Activity, ChecklistItem, DayOverride, clean_title, next_activity_id, serialize_day
from .recurrence import RecurringTemplate, parse_time_str, templates_for_date


@dataclass
class DisplayItem:
    """A checklist item as rendered. Exactly one of key / override_index is set for recurring items."""

    text: str
    done: bool
    key: str | None = None
    override_index: int | None = None


@dataclass
class DisplayActivity:
    """Read-only projection of a one-off activity or a recurring instance."""

    id: str
    title: str
    time: str
    items: list[DisplayItem]
    done: bool
    is_recurring: bool = False

    @property
    def template_id(self) -> str | None:
        return self.id if self.is_recurring else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "time": self.time,
            "done": self.done,
            "isRecurring": self.is_recurring,
            "items": [
                {"text": i.text, "done": i.done, "key": i.key, "overrideIndex": i.override_index}
                for i in self.items
            ],
        }


@dataclass
class DayState:
    """In-memory state of one open day."""

    day: str
    activities: list[Activity] = field(default_factory=list)
    overrides: OverrideStore = field(default_factory=OverrideStore)

    def day_overrides(self) -> dict[str, DayOverride]:
        return self.overrides.get(self.day)

    def find(self, activity_id: str) -> Activity | None:
        for act in self.activities:
            if act.id == activity_id:
                return act
        return None


def sort_by_time(activities: list[DisplayActivity]) -> list[DisplayActivity]:
    """Timed activities ascending, untimed last. Stable for equal keys."""
    return sorted(activities, key=lambda a: (not a.time, a.time))


def instance_for(template: RecurringTemplate, override: DayOverride | None) -> DisplayActivity:
    """Expand a fired template with its per-day override."""
    ov = override or DayOverride()
    done = ov.done

    items = []
    for idx, tpl_item in enumerate(template.items):
        key = tpl_item.key(idx)
        items.append(DisplayItem(text=tpl_item.text, done=done or ov.item_state.get(key, False), key=key))

    for idx, extra in enumerate(ov.item_overrides):
        items.append(DisplayItem(text=extra.text, done=done or extra.done, override_index=idx))

    return DisplayActivity(
        id=template.id,
        title=template.title or "(Recurring)",
        time=template.time or "",
        items=items,
        done=done,
        is_recurring=True,
    )


def build_display(
    day: DateLike,
    one_offs: list[Activity],
    templates: list[RecurringTemplate],
    overrides: dict[str, DayOverride] | None = None,
) -> list[DisplayActivity]:
    """
    Build the ordered display list for a day.

    Pure function - no I/O.
    """
    overrides = overrides or {}
    out = [
        DisplayActivity(
            id=act.id,
            title=act.title,
            time=act.time,
            items=[DisplayItem(text=i.text, done=i.done) for i in act.items],
            done=act.done,
        )
        for act in one_offs
    ]

    for template in templates_for_date(templates, day):
        out.append(instance_for(template, overrides.get(template.id)))

    return sort_by_time(out)


def display_for(state: DayState, templates: list[RecurringTemplate]) -> list[DisplayActivity]:
    return build_display(state.day, state.activities, templates, state.day_overrides())


def to_record(state: DayState, templates: list[RecurringTemplate]) -> str:
    """
    Serialize a day's current state for persistence.

    Item state for keys a still-existing template no longer defines is
    dropped. Overrides of deleted templates are kept as they are.
    """
    by_id = {t.id: t for t in templates}
    overrides = {}
    for template_id, ov in state.day_overrides().items():
        template = by_id.get(template_id)
        if template is not None:
            keys = set(template.item_keys())
            ov = DayOverride(
                done=ov.done,
                item_state={k: v for k, v in ov.item_state.items() if k in keys},
                item_overrides=ov.item_overrides,
            )
        overrides[template_id] = ov
    return serialize_day(state.activities, overrides)


# ============== One-off intents ==============


def toggle_one_off(state: DayState, activity_id: str, done: bool) -> bool:
    """Mark a one-off activity done or not; done cascades to its items."""
    act = state.find(activity_id)
    if act is None:
        return False
    act.done = done
    if done:
        for item in act.items:
            item.done = True
    return True


def toggle_one_off_item(state: DayState, activity_id: str, index: int, done: bool) -> bool:
    act = state.find(activity_id)
    if act is None or not 0 <= index < len(act.items):
        return False
    act.items[index].done = done
    return True


def add_one_off(
    state: DayState,
    title: str,
    time: str = "",
    items: list[str] | None = None,
) -> Activity | None:
    """Append a one-off activity. Returns None for a blank title."""
    title = clean_title(title)
    if not title:
        return None
    act = Activity(
        id=next_activity_id(state.activities),
        title=title,
        time=parse_time_str(time),
        items=[ChecklistItem(text=t.strip()) for t in items or [] if t.strip()],
    )
    state.activities.append(act)
    return act


def edit_one_off(
    state: DayState,
    activity_id: str,
    title: str | None = None,
    time: str | None = None,
) -> bool:
    """Change a one-off's title and/or time. An invalid time clears it."""
    act = state.find(activity_id)
    if act is None:
        return False
    if title is not None and clean_title(title):
        act.title = clean_title(title)
    if time is not None:
        act.time = parse_time_str(time)
    return True


def delete_one_off(state: DayState, activity_id: str) -> bool:
    act = state.find(activity_id)
    if act is None:
        return False
    state.activities.remove(act)
    return True


def add_one_off_item(state: DayState, activity_id: str, text: str) -> bool:
    act = state.find(activity_id)
    if act is None or not text.strip():
        return False
    act.items.append(ChecklistItem(text=text.strip()))
    return True


def delete_one_off_item(state: DayState, activity_id: str, index: int) -> bool:
    act = state.find(activity_id)
    if act is None or not 0 <= index < len(act.items):
        return False
    del act.items[index]
    return True


# ============== Recurring intents ==============


def toggle_recurring_instance(state: DayState, template_id: str, done: bool) -> bool:
    state.overrides.set(state.day, template_id, done=done)
    return True


def toggle_recurring_item(state: DayState, template_id: str, item_key: str, done: bool) -> bool:
    """Set one template item's state for the day. Ignored while the instance is done."""
    if state.overrides.get_override(state.day, template_id).done:
        return False
    state.overrides.set(state.day, template_id, item_state={item_key: done})
    return True


def add_ad_hoc_item(state: DayState, template_id: str, text: str) -> bool:
    """Add an item to this day's instance only. The template is untouched."""
    if not text.strip():
        return False
    current = state.overrides.get_override(state.day, template_id).item_overrides
    state.overrides.set(
        state.day,
        template_id,
        item_overrides=[*current, ChecklistItem(text=text.strip())],
    )
    return True


def set_ad_hoc_item_done(state: DayState, template_id: str, index: int, done: bool) -> bool:
    current = state.overrides.get_override(state.day, template_id).item_overrides
    if not 0 <= index < len(current):
        return False
    updated = list(current)
    updated[index] = ChecklistItem(text=current[index].text, done=done)
    state.overrides.set(state.day, template_id, item_overrides=updated)
    return True


def delete_ad_hoc_item(state: DayState, template_id: str, index: int) -> bool:
    return state.overrides.delete_override_item(state.day, template_id, index)
