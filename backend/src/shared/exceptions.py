class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str = "Resource", id: str = ""):
        super().__init__(f"{resource} not found: {id}" if id else f"{resource} not found")


class ConflictError(AppError):
    """Raised on optimistic locking conflicts (stale snapshot version)."""

    def __init__(self, message: str = "Snapshot was modified by another writer"):
        super().__init__(message)


class InvalidRangeError(AppError):
    """Raised when a requested line range does not fit the annotation it targets."""

    def __init__(self, message: str = "Invalid line range"):
        super().__init__(message)


class PersistenceError(AppError):
    """Raised when a snapshot cannot be written to the store."""

    def __init__(self, message: str = "Failed to persist snapshot"):
        super().__init__(message)
