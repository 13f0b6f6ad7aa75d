"""Errors raised by slot generation and booking."""


class SchedulingError(Exception):
    """Base class for scheduling failures."""


class SlotUnavailable(SchedulingError):
    """The proposed interval collides with an existing appointment."""

    def __init__(self, message: str = 'Time slot is already booked'):
        super().__init__(message)


class InvalidInput(SchedulingError, ValueError):
    """Missing or malformed doctor id, date, or duration."""


class UpstreamUnavailable(SchedulingError):
    """The appointment store failed."""
