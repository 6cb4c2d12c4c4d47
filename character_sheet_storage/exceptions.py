"""
Errors raised by the character stores.

Every error carries a human-readable ``message`` and a ``details`` dict
suitable for structured log fields.
"""


class CharacterStorageError(Exception):
    """Base exception for all character storage errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RecordNotFoundError(CharacterStorageError):
    """Raised when a write targets a record that does not exist.

    Reads and deletes never raise this; absence is a normal result for them.
    """

    def __init__(self, record_id: str):
        super().__init__(f"Character record not found: {record_id}", {"record_id": record_id})
        self.record_id = record_id


class ValidationError(CharacterStorageError):
    """An id, owner id or payload was rejected before reaching a backend."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class StorageIOError(CharacterStorageError):
    """The local collection file could not be read or written.

    ``operation`` names the step that failed (e.g. ``write_json``) and
    ``cause`` keeps the underlying OSError.
    """

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Local character storage failed during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(CharacterStorageError):
    """Raised when the remote store is used without a usable connection.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Cosmos DB not usable at {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class AuthenticationError(CharacterStorageError):
    """Raised when credentials for remote storage cannot be built."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"Could not build Cosmos DB credentials for {endpoint}", details)
        self.endpoint = endpoint
        self.reason = reason
