"""
unsurf/utils/exceptions.py

Custom exceptions for the project.

Closed taxonomy raised by the discovery, replay and heal tools:
- AutomationError: the browser session could not navigate or capture
- NetworkError: an HTTP replay failed, returned non-2xx, or had an unreadable body
- PersistenceError: storage I/O failed
- NotFoundError: a referenced site/path/endpoint/blob does not exist

DirectoryValidationError belongs to the index collaborator boundary only.
"""


class UnsurfError(Exception):
    """
    Base class for all errors raised by unsurf.
    """
    kind: str = "unknown"
    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AutomationError(UnsurfError):
    """
    Exception raised when browser automation fails.
    May carry a diagnostic screenshot taken at the point of failure.
    """
    kind = "automation"

    def __init__(self, message: str, screenshot: bytes | None = None) -> None:
        super().__init__(message)
        self.screenshot = screenshot


class NetworkError(UnsurfError):
    """
    Exception raised when an HTTP replay cannot complete.
    """
    kind = "network"

    def __init__(self, url: str, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} ({self.status} {self.url})"
        return f"{self.message} ({self.url})"


class PersistenceError(UnsurfError):
    """
    Exception raised when the persistence layer fails.
    """
    kind = "persistence"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NotFoundError(UnsurfError):
    """
    Exception raised when a referenced resource does not exist.
    """
    kind = "not_found"
    http_status = 404

    def __init__(self, id: str, resource: str) -> None:
        super().__init__(f"{resource} not found: {id}")
        self.id = id
        self.resource = resource


class DirectoryValidationError(UnsurfError):
    """
    Exception raised by a directory when a site fails publish validation.
    """
    kind = "validation"
    http_status = 400

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
