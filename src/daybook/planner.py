"""Planner session - the explicit context shared by the CLI and any other front end.

Holds the loaded templates, the override store and the storage adapters, and
routes every edit through an ActivityMerger intent before persisting.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable

from .adapters.debounced_writer import DebouncedWriter
from .adapters.file_day_store import FileDayStore
from .adapters.json_cache import JsonFileCache
from .adapters.json_templates import JsonTemplateStore
from .config import Config
from .core.dates import DateLike, day_key, to_date, week_days
from .core.merge import DayState, DisplayActivity, build_display, display_for, to_record
from .core.overrides import OverrideStore
from .core.record import parse_day
from .core.recurrence import (
    Recurrence,
    RecurringTemplate,
    TemplateItem,
    new_template_id,
    parse_time_str,
    validate_template,
)
from .core.reminders import Reminder, reminders_for_day
from .errors import PersistenceError, TemplateNotFoundError
from .ports.day_store import DayStore
from .ports.key_value import KeyValueCache
from .ports.template_store import TemplateStore

logger = logging.getLogger(__name__)


class Planner:
    """One user's planner: templates, per-day overrides and persistence."""

    def __init__(
        self,
        day_store: DayStore,
        template_store: TemplateStore,
        cache: KeyValueCache | None = None,
        writer: DebouncedWriter | None = None,
    ):
        self.day_store = day_store
        self.template_store = template_store
        self.overrides = OverrideStore(cache)
        self.writer = writer
        self.templates: list[RecurringTemplate] = template_store.load()

    # ============== Days ==============

    def open_day(self, day: DateLike) -> DayState:
        """Read and parse a day's record. The record is the source of truth for its overrides."""
        target = to_date(day)
        activities, overrides = parse_day(self.day_store.read(target))
        self.overrides.replace_day(target, overrides)
        return DayState(day=day_key(target), activities=activities, overrides=self.overrides)

    def display(self, state: DayState) -> list[DisplayActivity]:
        return display_for(state, self.templates)

    def week(self, day: DateLike) -> list[tuple[date, list[DisplayActivity]]]:
        """Display lists for the Monday-to-Sunday week containing day."""
        week = []
        for d in week_days(day):
            # Independent pass per day: nothing is shared with open days.
            activities, overrides = parse_day(self.day_store.peek(d) or "")
            week.append((d, build_display(d, activities, self.templates, overrides)))
        return week

    def apply(self, state: DayState, intent: Callable[..., Any], *args, **kwargs) -> Any:
        """Run an intent against a day and persist if it changed anything."""
        result = intent(state, *args, **kwargs)
        if result:
            self.save(state)
        return result

    def save(self, state: DayState) -> None:
        """Persist a day's one-offs and overrides. Templates are never written here."""
        text = to_record(state, self.templates)
        # Keep the override cache equal to what the record will parse back to.
        self.overrides.replace_day(state.day, parse_day(text)[1])
        if self.writer is not None:
            self.writer.request(state.day, text)
        else:
            self.day_store.write(to_date(state.day), text)

    def reminders(self, state: DayState, lead_minutes: int, now: datetime | None = None) -> list[Reminder]:
        return reminders_for_day(self.display(state), state.day, lead_minutes, now)

    def flush(self) -> None:
        """Write pending saves now. Raises PersistenceError if a save failed."""
        if self.writer is not None:
            self.writer.flush()
            self._raise_write_error()

    def close(self) -> None:
        if self.writer is not None:
            self.writer.shutdown()
            self._raise_write_error()

    def _raise_write_error(self) -> None:
        error = self.writer.last_error
        if error is None:
            return
        self.writer.last_error = None
        raise PersistenceError(f"Auto-save failed: {error}") from error

    # ============== Templates ==============

    def get_template(self, template_id: str) -> RecurringTemplate:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(f"No recurring template {template_id}")

    def create_template(
        self,
        title: str,
        recurrence: Recurrence,
        time: str = "",
        items: list[str] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> RecurringTemplate:
        """Validate and add a template. Its id is fixed from here on."""
        template = RecurringTemplate(
            id=new_template_id(),
            title=title.strip(),
            recurrence=recurrence,
            time=parse_time_str(time),
            items=[TemplateItem(text=t.strip()) for t in items or [] if t.strip()],
            start_date=start_date,
            end_date=end_date,
        )
        while any(t.id == template.id for t in self.templates):
            template.id = f"{template.id}_"
        validate_template(template)
        self.templates.append(template)
        self._save_templates()
        logger.info(f"Created recurring template {template.id}")
        return template

    def update_template(self, template_id: str, **changes: Any) -> RecurringTemplate:
        """
        Replace fields of a template, keeping its id.

        Accepts the RecurringTemplate field names; `items` may be given as
        plain strings.
        """
        current = self.get_template(template_id)
        changes.pop("id", None)
        if "items" in changes:
            changes["items"] = [
                item if isinstance(item, TemplateItem) else TemplateItem(text=str(item).strip())
                for item in changes["items"] or []
            ]
        if "time" in changes:
            changes["time"] = parse_time_str(changes["time"])
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()

        updated = replace(current, **changes)
        validate_template(updated)
        self.templates[self.templates.index(current)] = updated
        self._save_templates()
        return updated

    def delete_template(self, template_id: str) -> None:
        """Remove a template. Overrides already stored for it are left in place."""
        template = self.get_template(template_id)
        self.templates.remove(template)
        self._save_templates()
        logger.info(f"Deleted recurring template {template_id}")

    def _save_templates(self) -> None:
        self.template_store.save(self.templates)


def open_planner(config: Config, debounced: bool = True) -> Planner:
    """Build a planner on the configured data directory."""
    day_store = FileDayStore(config.data_path)
    writer = None
    if debounced:
        writer = DebouncedWriter(day_store.write, delay=config.save_delay)
    return Planner(
        day_store=day_store,
        template_store=JsonTemplateStore(config.templates_path),
        cache=JsonFileCache(config.cache_path),
        writer=writer,
    )
