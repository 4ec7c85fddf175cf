"""Error taxonomy shared by every app.

Each error knows the HTTP-equivalent status code and how to render
itself as the public error payload, so whatever transport sits on top
only translates presentation, never kind.
"""

from typing import Any, ClassVar


class HubError(Exception):
    """Base class for all reported errors."""

    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = 'Internal server error'

    def __init__(self, message: str | None = None) -> None:
        """Initialize HubError.

        Args:
            message: Human-readable message; class default if omitted.
        """
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Render the error payload.

        Returns:
            ``{'success': False, 'message': ...}``.
        """
        return {'success': False, 'message': self.message}


class ValidationError(HubError):
    """Raised when input is malformed or missing (client-fixable)."""

    status_code = 400
    default_message = 'Validation error'

    def __init__(
        self,
        message: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Summary message.
            errors: Field-level messages.
        """
        super().__init__(message)
        self.errors = list(errors or [])

    def to_payload(self) -> dict[str, Any]:
        """Render the error payload with field-level messages.

        Returns:
            Payload including ``errors`` when there are any.
        """
        payload = super().to_payload()
        if self.errors:
            payload['errors'] = self.errors
        return payload


class AuthenticationError(HubError):
    """Raised when no identity is present or the token is invalid."""

    status_code = 401
    default_message = 'Not authenticated'


class AuthorizationError(HubError):
    """Raised when an identity lacks the role or ownership required."""

    status_code = 403
    default_message = 'Forbidden: insufficient permissions'


class NotFoundError(HubError):
    """Raised when an entity is absent or inactive."""

    status_code = 404
    default_message = 'Not found'


class ConflictError(HubError):
    """Raised on uniqueness violations or deletes blocked by dependents."""

    status_code = 409
    default_message = 'Conflict'

    def __init__(
        self,
        message: str | None = None,
        blocking_count: int | None = None,
    ) -> None:
        """Initialize ConflictError.

        Args:
            message: Reason of the conflict.
            blocking_count: Number of dependents blocking the operation.
        """
        super().__init__(message)
        self.blocking_count = blocking_count


class ExternalServiceError(HubError):
    """Raised when object storage or the credential store fails."""

    status_code = 502
    default_message = 'External service failure'


class ExternalServiceTimeoutError(ExternalServiceError):
    """Raised when an external call exceeds its time bound."""

    status_code = 504
    default_message = 'External service timed out'
