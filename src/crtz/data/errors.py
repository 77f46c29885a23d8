"""Custom exceptions for loading script files."""


class DataError(Exception):
    """Base exception for the data layer."""


class ScriptLoadError(DataError):
    """Raised when a script file is missing or unreadable."""
