"""Exceptions raised by logme."""


class LogmeError(Exception):
    """Base class for logme errors."""


class InvalidCodeError(LogmeError, ValueError):
    """A log event was requested for a string that is not a valid log code."""

    def __init__(self, code: str):
        super().__init__(f"Invalid log code format: {code}")
        self.code = code
