"""JSON file key-value cache adapter."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class JsonFileCache:
    """
    A string key-value store kept in one JSON object file.

    Implements KeyValueCache protocol. The whole file is rewritten on every set.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._data: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        self._data = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                if isinstance(data, dict):
                    self._data = {str(k): str(v) for k, v in data.items()}
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Ignoring unreadable cache {self.path}: {e}")
        return self._data

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as e:
            # The cache is rebuilt from day records, so a failed write only costs a re-parse.
            logger.warning(f"Failed to write cache {self.path}: {e}")
