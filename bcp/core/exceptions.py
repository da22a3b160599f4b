"""
Service-layer exception hierarchy.

Services raise these; the blueprint registers one handler per type and
maps it to an HTTP status, so routes never build error responses for
domain failures themselves.

Usage:
    from bcp.core.exceptions import NotFoundError, ValidationError, StorageError

    raise NotFoundError(resource="BCP", resource_id=plan_id)
    raise ValidationError("name is required", details={"name": "required"})
    raise StorageError("replace_processes", plan_id, cause=exc)
"""


class NotFoundError(Exception):
    """Raised when a plan identifier has no row.

    Args:
        resource: Human-readable entity name (e.g. "BCP").
        resource_id: The identifier that was looked up.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a wizard step payload is missing a required field or
    carries a value outside a closed option set.

    Raised before any storage call. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field paths
                 (e.g. "communications[1].email"); values are descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class StorageError(Exception):
    """Raised when an underlying database operation fails.

    The store rolls back before raising, so a failed step leaves the
    previous child set in place. Never retried inside the store.
    Maps to HTTP 500.

    Args:
        operation: Store primitive that failed (e.g. "replace_processes").
        plan_id: Plan the operation was scoped to, if any.
        cause: The original driver / SQLAlchemy exception.
    """

    def __init__(self, operation: str, plan_id: str | None = None, cause: Exception | None = None) -> None:
        self.operation = operation
        self.plan_id = plan_id
        self.cause = cause
        msg = f"Storage failure in {operation}"
        if plan_id is not None:
            msg += f" (bcp={plan_id})"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
