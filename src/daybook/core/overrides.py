"""Per-day override state for recurring instances."""

import json
import logging

from daybook.ports.key_value import KeyValueCache

from .dates import DateLike, day_key
from .record import ChecklistItem, DayOverride

logger = logging.getLogger(__name__)

CACHE_PREFIX = "dayOverrides:"

_UNSET = object()


def cache_key(day: DateLike) -> str:
    return f"{CACHE_PREFIX}{day_key(day)}"


class OverrideStore:
    """
    Override maps keyed by day (YYYY-MM-DD), then by template id.

    Writes replace the whole per-day map; the optional cache is read through
    on first access to a day and written through on every mutation.
    """

    def __init__(self, cache: KeyValueCache | None = None):
        self.cache = cache
        self._days: dict[str, dict[str, DayOverride]] = {}

    def get(self, day: DateLike) -> dict[str, DayOverride]:
        """Overrides for a day, keyed by template id. Never raises."""
        key = day_key(day)
        if key not in self._days:
            self._days[key] = self._load_cached(key)
        return self._days[key]

    def get_override(self, day: DateLike, template_id: str) -> DayOverride:
        """Override for one template, or a default one (not stored)."""
        return self.get(day).get(template_id) or DayOverride()

    def replace_day(self, day: DateLike, overrides: dict[str, DayOverride]) -> None:
        """Replace a day's map, e.g. with what was parsed from its record."""
        key = day_key(day)
        self._days[key] = dict(overrides)
        self._save_cached(key)

    def set(
        self,
        day: DateLike,
        template_id: str,
        *,
        done=_UNSET,
        item_state: dict[str, bool] | None = None,
        item_overrides: list[ChecklistItem] | None = None,
    ) -> DayOverride:
        """Merge a patch into a template's override, creating it if absent."""
        overrides = self.get(day)
        ov = overrides.setdefault(template_id, DayOverride())
        if done is not _UNSET:
            ov.done = bool(done)
        if item_state:
            ov.item_state.update(item_state)
        if item_overrides is not None:
            ov.item_overrides = list(item_overrides)
        self._save_cached(day_key(day))
        return ov

    def delete_override_item(self, day: DateLike, template_id: str, index: int) -> bool:
        """Remove an ad hoc item by position. Out-of-range is a no-op."""
        ov = self.get(day).get(template_id)
        if ov is None or not 0 <= index < len(ov.item_overrides):
            return False
        del ov.item_overrides[index]
        self._save_cached(day_key(day))
        return True

    def _load_cached(self, key: str) -> dict[str, DayOverride]:
        if self.cache is None:
            return {}
        raw = self.cache.get(f"{CACHE_PREFIX}{key}")
        if not raw:
            return {}
        try:
            data = json.loads(raw)
            return {tid: DayOverride.from_dict(ov) for tid, ov in data.items()}
        except (json.JSONDecodeError, AttributeError, TypeError) as e:
            logger.warning(f"Ignoring corrupt override cache for {key}: {e}")
            return {}

    def _save_cached(self, key: str) -> None:
        if self.cache is None:
            return
        data = {tid: ov.to_dict() for tid, ov in self._days.get(key, {}).items()}
        self.cache.set(f"{CACHE_PREFIX}{key}", json.dumps(data))
