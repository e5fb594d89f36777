"""Ports - interfaces/protocols for external dependencies."""

from .key_value import KeyValueCache
from .day_store import DayStore
from .template_store import TemplateStore

__all__ = [
    "KeyValueCache",
    "DayStore",
    "TemplateStore",
]
