"""Adapters - I/O implementations of ports."""

from .file_day_store import FileDayStore
from .json_templates import JsonTemplateStore
from .json_cache import JsonFileCache
from .debounced_writer import DebouncedWriter

__all__ = [
    "FileDayStore",
    "JsonTemplateStore",
    "JsonFileCache",
    "DebouncedWriter",
]
