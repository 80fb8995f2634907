"""Exception classes raised by the analytics engine."""

from typing import Any


class AnalyticsError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(AnalyticsError):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AnalyticsError):
    def __init__(self, resource: str = "Resource", identifier: Any = None):
        detail = f"{resource} not found"
        if identifier is not None:
            detail = f"{resource} {identifier} not found"
        super().__init__(detail)
        self.resource = resource
        self.identifier = identifier
        self.detail = detail


class RepositoryError(AnalyticsError):
    """A backend failure, tagged with the repository operation that raised it."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        detail = f"{operation} failed"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)
        self.operation = operation
        self.cause = cause
        self.detail = detail
