"""
Custom exceptions for the Keyword Cluster Processor.
"""


class KeywordProcessorError(Exception):
    """Base exception for keyword processing errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InputError(KeywordProcessorError):
    """Exception for unreadable or malformed input files."""

    def __init__(self, message: str, filename: str = None):
        self.filename = filename
        super().__init__(message, {"filename": filename})


class ValidationError(KeywordProcessorError):
    """Exception for data validation errors."""

    def __init__(self, message: str, field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(
            message,
            {"field": field, "value": str(value) if value else None}
        )


class MutationError(KeywordProcessorError):
    """Exception for rejected cluster edits and deletions."""

    def __init__(self, message: str, index: int = None, size: int = None):
        self.index = index
        self.size = size
        super().__init__(
            message,
            {"index": index, "size": size}
        )


class BoundaryError(KeywordProcessorError):
    """Exception for failures of storage and notification collaborators."""

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int = None,
        response: str = None
    ):
        self.service = service
        self.status_code = status_code
        self.response = response
        super().__init__(
            message,
            {
                "service": service,
                "status_code": status_code,
                "response": response
            }
        )


class DatabaseError(BoundaryError):
    """Exception for database-related errors."""

    def __init__(self, message: str, operation: str = None, table: str = None):
        self.operation = operation
        self.table = table
        super().__init__(message, service="Supabase")
        self.details.update({"operation": operation, "table": table})


class ProjectNotFoundError(DatabaseError):
    """Exception for lookups of projects that do not exist."""

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(
            f"Project not found: {project_id}",
            operation="select",
            table="projects"
        )


class NotificationError(BoundaryError):
    """Exception for webhook delivery errors."""

    def __init__(
        self,
        message: str,
        status_code: int = None,
        response: str = None
    ):
        super().__init__(
            message,
            service="Webhook",
            status_code=status_code,
            response=response
        )


class ConfigurationError(KeywordProcessorError):
    """Exception for configuration errors."""

    def __init__(self, message: str, missing_keys: list = None):
        self.missing_keys = missing_keys or []
        super().__init__(
            message,
            {"missing_keys": missing_keys}
        )


class ProcessingError(KeywordProcessorError):
    """Exception for processing session errors."""

    def __init__(
        self,
        message: str,
        phase: str,
        recoverable: bool = True
    ):
        self.phase = phase
        self.recoverable = recoverable
        super().__init__(
            message,
            {
                "phase": phase,
                "recoverable": recoverable
            }
        )


class FieldCoercionWarning(UserWarning):
    """Warning for cell values that fell back to their default."""
