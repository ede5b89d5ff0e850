"""Exceptions raised by the maintenance engine and its collaborators."""


class ServicebookError(Exception):
    """Base class for all servicebook errors."""


class ValidationError(ServicebookError, ValueError):
    """Input is missing a required field or carries a malformed value."""


class NotFound(ServicebookError, LookupError):
    """A vehicle or record id does not (or no longer does) exist."""


class SchedulingFailure(ServicebookError):
    """A reminder trigger could not be registered or cancelled."""


class StoreError(ServicebookError):
    """The backing data file cannot be read or is malformed."""
