"""Domain-specific exceptions following DDD principles."""


class MowgliansError(Exception):
    """Base exception for all Mowglians SDK errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DataAccessError(MowgliansError):
    """Remote data access errors."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        operation: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.table = table
        self.operation = operation
        if table:
            self.details["table"] = table
        if operation:
            self.details["operation"] = operation


class TransportError(DataAccessError):
    """Raised when the backend cannot be reached or fails to answer."""

    pass


class AuthorizationError(DataAccessError):
    """Raised when the backend rejects an operation for the current identity or role."""

    pass


class RecordFormatError(DataAccessError):
    """Raised when a row returned by the backend does not match its record type."""

    def __init__(self, message: str, table: str | None = None, record_type: str | None = None):
        super().__init__(message, table=table, operation="select")
        self.record_type = record_type
        if record_type:
            self.details["record_type"] = record_type


class ConflictError(DataAccessError):
    """Raised when a write would duplicate a record the backend already holds."""

    def __init__(self, message: str, table: str | None = None, title: str | None = None):
        super().__init__(message, table=table, operation="insert")
        self.title = title


class ValidationError(MowgliansError):
    """Client-side input validation errors.

    Raised before any remote operation is issued.
    """

    def __init__(self, message: str, field: str | None = None, title: str | None = None):
        super().__init__(message)
        self.field = field
        self.title = title
        if field:
            self.details["field"] = field


class PartialFailureError(MowgliansError):
    """Raised when a later step of a multi-step write fails after earlier steps applied.

    Earlier steps are not rolled back.
    """

    def __init__(
        self,
        failed_step: str,
        applied_steps: list[str],
        cause: BaseException | None = None,
    ):
        reason = getattr(cause, "message", None) or (str(cause) if cause else "unknown error")
        super().__init__(
            f"Partially applied: {', '.join(applied_steps)} succeeded but "
            f"'{failed_step}' failed: {reason}",
            details={"failed_step": failed_step, "applied_steps": list(applied_steps)},
        )
        self.failed_step = failed_step
        self.applied_steps = list(applied_steps)
        self.cause = cause


class SessionError(MowgliansError):
    """Session lifecycle and persistence errors."""

    pass


class ConfigurationError(MowgliansError):
    """Raised when configuration cannot be loaded or is invalid."""

    pass
