"""
services/errors.py

시험 응시 서비스에서 발생하는 예외.
"""

from typing import Optional

NETWORK_ERROR_MESSAGE = "Network error. Check your connection and try again."


class CBTError(Exception):
    """Base class for all test-session errors."""


class LoadError(CBTError):
    """The test definition could not be fetched or was rejected by the server."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SubmissionError(CBTError):
    """The server did not accept the submission."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidPhaseError(CBTError):
    """An operation was called in a phase that does not allow it."""


class InvalidAnswerError(CBTError, ValueError):
    """An answer value does not fit the question it is stored for."""
