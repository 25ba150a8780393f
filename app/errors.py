"""
Error taxonomy shared by validators, repositories and routers.

Routers translate these into HTTP responses:
- ParameterValidationError -> 400
- ResourceNotFoundError    -> 404
- DatabaseUnavailableError -> 503
- QueryExecutionError      -> 500
"""


class ParameterValidationError(Exception):
    """Raised when a request parameter is malformed or out of range."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ResourceNotFoundError(Exception):
    """Raised when a single requested entity does not exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.identifier = identifier


class DatabaseError(Exception):
    """Base exception for graph database operations."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class DatabaseUnavailableError(DatabaseError):
    """The query executor cannot be reached at all."""


class QueryExecutionError(DatabaseError):
    """The executor is reachable but the query itself failed."""
