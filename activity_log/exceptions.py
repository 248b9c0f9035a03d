"""Custom exception classes for the DocuTranslate activity log service.

Route-level errors are raised as one of these typed exceptions so that
FastAPI exception handlers can convert them to structured HTTP responses.
``StorePersistenceError`` never reaches a handler: the activity logger
recovers from it internally.
"""


class StorePersistenceError(Exception):
    """Raised by a log store when an entry could not be written.

    Args:
        message: Human-readable description of the failure.
        category: Category of the entry that failed to persist, if known.
    """

    def __init__(self, message: str, category: str | None = None) -> None:
        super().__init__(message)
        self.category: str | None = category


class LogNotFoundError(Exception):
    """Raised when a requested system log row does not exist.

    Args:
        log_id: The integer primary key that was not found.
    """

    def __init__(self, log_id: int) -> None:
        super().__init__(f"System log with id={log_id} not found")
        self.log_id: int = log_id


class DatabaseConnectionError(Exception):
    """Raised when a connection to PostgreSQL cannot be established.

    Args:
        message: Detail from the underlying driver exception.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
