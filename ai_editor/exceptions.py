"""Custom exceptions for editor project storage.

Backends and table gateways raise these; the stores catch them at their
public boundary and report failure through return values instead.
"""


class ProjectStorageError(Exception):
    """Base exception for project storage errors."""

    def __init__(self, message: str, backend: str | None = None):
        self.message = message
        self.backend = backend
        super().__init__(message)


class CacheBackendError(ProjectStorageError):
    """Raised when a local cache engine fails or is unavailable."""

    def __init__(self, backend: str, details: str | None = None):
        message = f"Local cache backend {backend} failed"
        if details:
            message += f": {details}"
        super().__init__(message, backend)


class RemoteStoreError(ProjectStorageError):
    """Raised when a remote table request fails."""

    def __init__(
        self,
        operation: str,
        status_code: int | str | None = None,
        details: str | None = None,
    ):
        message = f"Remote {operation} failed"
        if status_code:
            message += f" (status {status_code})"
        if details:
            message += f": {details}"
        self.operation = operation
        self.status_code = status_code
        super().__init__(message, "remote")


class NotAuthenticatedError(ProjectStorageError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"No user logged in for {operation}", "remote")
