"""Exceptions raised by Daybook."""


class DaybookError(Exception):
    """Base class for Daybook errors."""


class TemplateValidationError(DaybookError, ValueError):
    """A recurring template failed validation at create/update time."""


class TemplateNotFoundError(DaybookError, LookupError):
    """No recurring template with the given id."""


class PersistenceError(DaybookError):
    """Writing a day record or the templates file failed."""
