"""Custom exception classes for the roomhooks API."""


class RoomHooksError(Exception):
    """Base exception for roomhooks."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(RoomHooksError):
    """Request validation failure (missing repository, empty event set, ...)."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(RoomHooksError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(RoomHooksError):
    """No usable GitHub access token."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class ConflictError(RoomHooksError):
    """Resource state conflict."""

    def __init__(self, message: str):
        super().__init__("CONFLICT", message, status_code=409)


class RemoteAPIError(RoomHooksError):
    """The repository host rejected or failed a request."""

    def __init__(self, message: str, remote_status: int | None = None, details=None):
        self.remote_status = remote_status
        super().__init__("REMOTE_API_ERROR", message, details, status_code=502)


class SubscriptionError(RoomHooksError):
    """Reconciliation could not be completed."""

    def __init__(self, message: str, details=None):
        super().__init__("SUBSCRIPTION_ERROR", message, details, status_code=502)
