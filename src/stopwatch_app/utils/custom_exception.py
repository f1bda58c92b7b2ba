class RecordValidationError(ValueError):
    """Raised when a timing record input is malformed (e.g. negative duration)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class StoreUnavailableError(Exception):
    """Raised by a record store when its backing database cannot be reached."""
    pass


class ApiError(Exception):
    """Exception raised when the records API answers with a non-2xx status."""

    def __init__(self, status: int, url: str, message: str, details=None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.url = url
        self.details = details if details is not None else {}
