"""Service-layer exceptions."""


class InterpreterError(Exception):
    """Base exception for runtime failures that cannot be reported in-band."""


class InputClosedError(InterpreterError):
    """Raised when the input stream ends while the interpreter waits for a choice."""
