"""
Custom exceptions for job tracker storage.

Local and remote backends raise these so the sync layer can
absorb them uniformly and reflect failures in the sync status.
"""


class JobTrackerStorageError(Exception):
    """Base exception for all job tracker storage errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StorageIOError(JobTrackerStorageError):
    """Raised when a local storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Local storage {operation} failed" + (f" at {path}" if path else "")
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class SnapshotDecodeError(JobTrackerStorageError):
    """Raised when a stored snapshot cannot be deserialized."""

    def __init__(self, key: str, cause: Exception | None = None):
        details = {"key": key}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Corrupt snapshot for key: {key}", details)
        self.key = key
        self.cause = cause


class RemoteUnavailableError(JobTrackerStorageError):
    """Raised when the remote store cannot be reached or refuses access."""

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Remote store unavailable: {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class RemoteWriteError(JobTrackerStorageError):
    """Raised when writing or deleting a single remote document fails."""

    def __init__(self, operation: str, record_id: str, cause: Exception | None = None):
        details = {"operation": operation, "record_id": record_id}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Remote {operation} failed for record {record_id}", details)
        self.operation = operation
        self.record_id = record_id
        self.cause = cause


class AuthenticationError(JobTrackerStorageError):
    """Raised when authentication to the remote store fails."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"Remote store rejected credentials for {endpoint}", details)
        self.endpoint = endpoint
        self.reason = reason


class IdentityNotSetError(JobTrackerStorageError):
    """Raised when a collection is used before an identity is known."""

    def __init__(self, collection: str):
        super().__init__(
            f"Collection '{collection}' used before initialize() was called with an identity",
            {"collection": collection},
        )
        self.collection = collection


class ValidationError(JobTrackerStorageError):
    """Raised when record data validation fails."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Invalid {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value
