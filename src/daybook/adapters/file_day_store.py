"""File-based day record storage adapter."""

import logging
from datetime import date
from pathlib import Path

from daybook.errors import PersistenceError

logger = logging.getLogger(__name__)


class FileDayStore:
    """
    File-based day record storage.

    Implements DayStore protocol. Each day gets a text file at
    <data_dir>/<YYYY>/<MM>/<DD>.txt.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_date(self, target_date: date) -> Path:
        """Get the file path for a given date."""
        return (
            self.data_dir
            / f"{target_date.year:04d}"
            / f"{target_date.month:02d}"
            / f"{target_date.day:02d}.txt"
        )

    def read(self, target_date: date) -> str:
        """Read a day's record, creating it with a header line if missing."""
        path = self._path_for_date(target_date)
        if not path.exists():
            logger.debug(f"Creating day record {path}")
            self._write_path(path, f"# {target_date.isoformat()}\n\n")
        return path.read_text(encoding="utf-8")

    def peek(self, target_date: date) -> str | None:
        """Read a day's record without creating it. Returns None if not found."""
        path = self._path_for_date(target_date)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, target_date: date, content: str) -> None:
        """Write/overwrite a day's record."""
        self._write_path(self._path_for_date(target_date), content)

    def exists(self, target_date: date) -> bool:
        """Check if a record exists for a date."""
        return self._path_for_date(target_date).exists()

    def list_dates(self, start_date: date, end_date: date) -> list[date]:
        """List dates with records in a range."""
        dates = []
        for path in self.data_dir.glob("*/*/*.txt"):
            try:
                entry_date = date(int(path.parent.parent.name), int(path.parent.name), int(path.stem))
                if start_date <= entry_date <= end_date:
                    dates.append(entry_date)
            except ValueError:
                continue
        return sorted(dates)

    def _write_path(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
