"""JSON file storage adapter for recurring templates."""

import json
import logging
from pathlib import Path

from daybook.core.recurrence import RecurringTemplate, normalize_template
from daybook.errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonTemplateStore:
    """
    Recurring templates in a single JSON array file.

    Implements TemplateStore protocol. Read and rewritten wholesale.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> list[RecurringTemplate]:
        """Load and normalize all templates. Missing or corrupt file yields []."""
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read {self.path}, starting with no templates: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Expected a JSON array in {self.path}, starting with no templates")
            return []

        templates = []
        for i, raw in enumerate(data):
            if not isinstance(raw, dict):
                continue
            try:
                templates.append(normalize_template(raw, i))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed template #{i} in {self.path}: {e}")
        return templates

    def save(self, templates: list[RecurringTemplate]) -> None:
        """Rewrite the whole template file."""
        content = json.dumps([t.to_dict() for t in templates], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e
