"""
Error taxonomy for the queue session layer.
Each error carries the HTTP status it maps to so the API layer can build
the error envelope without knowing about individual failure modes.
"""
from typing import Optional

from botocore.exceptions import ClientError


class QueueUIException(Exception):
    """Base exception for queue session errors"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(QueueUIException):
    """Request payload rejected before reaching the backend"""

    status_code = 400


class NotConfiguredError(QueueUIException):
    """No queue name or URL is bound to the session"""

    status_code = 400

    def __init__(self, message: str = "no queue configured"):
        super().__init__(message)


class ResolutionError(QueueUIException):
    """Queue name could not be resolved to a URL"""

    status_code = 503


class BackendCallError(QueueUIException):
    """An SQS call failed"""

    status_code = 502


class FetchError(BackendCallError):
    """Fetch deadline expired before any message arrived"""

    status_code = 504


class ReconfigurationError(QueueUIException):
    """A new queue binding was rejected; the previous session stays active"""

    status_code = 400


def describe_error(error: Exception) -> str:
    """Render a boto error as '<Code>: <Message>', anything else as str()"""
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        code = err.get("Code", "")
        message = err.get("Message", "")
        if code and message:
            return f"{code}: {message}"
        if code or message:
            return code or message
    return str(error) or error.__class__.__name__
