"""Configuration management for Daybook."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DAYBOOK_HOME = Path(os.environ.get("DAYBOOK_HOME", Path.home() / "daybook"))
CONFIG_FILE = DAYBOOK_HOME / "config" / "daybook.conf"
DATA_DIR = DAYBOOK_HOME / "data"

TEMPLATES_FILE_NAME = "recurring.json"
CACHE_FILE_NAME = ".cache.json"


@dataclass
class Config:
    """Daybook configuration."""

    data_dir: str = ""
    save_delay: float = 0.5
    reminder_lead_minutes: int = 15

    @property
    def data_path(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR

    @property
    def templates_path(self) -> Path:
        return self.data_path / TEMPLATES_FILE_NAME

    @property
    def cache_path(self) -> Path:
        return self.data_path / CACHE_FILE_NAME


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from daybook.conf file."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "data_dir":
                config.data_dir = value
            case "save_delay":
                try:
                    config.save_delay = float(value)
                except ValueError:
                    logger.warning(f"Invalid SAVE_DELAY {value!r}, using {config.save_delay}")
            case "reminder_lead_minutes":
                try:
                    config.reminder_lead_minutes = int(value)
                except ValueError:
                    logger.warning(
                        f"Invalid REMINDER_LEAD_MINUTES {value!r}, using {config.reminder_lead_minutes}"
                    )
            case _:
                logger.debug(f"Ignoring unknown config key {key}")

    return config
