"""
Application-wide exception hierarchy.

Services raise these types; ``timekeeper.utils.errors.register_error_handlers``
maps each one to an HTTP status exactly once, so blueprints never translate
errors by hand.

Usage:
    from timekeeper.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="TimeEntry", resource_id=entry_id)
    raise ValidationError("description is required", details={"description": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist for the calling user.

    Used for BOTH genuinely missing records AND records owned by another
    user. A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable model name (e.g. "DailyPlan").
        resource_id: The id that was looked up. Logged, not returned to clients.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(Exception):
    """Raised when input is missing, malformed or breaks a business rule.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class AuthenticationError(Exception):
    """Raised for bad credentials and missing, invalid or expired tokens.

    Maps to HTTP 401. The message is returned to the client verbatim, so it
    must never reveal whether an account exists.
    """

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)
