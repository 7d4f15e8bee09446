"""Domain exceptions."""


class GSTLifecycleError(Exception):
    """Base exception for the lifecycle service."""

    pass


class PermissionDenied(GSTLifecycleError):
    """User does not have permission for the requested action."""

    pass


class NotFound(GSTLifecycleError):
    """Requested resource was not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class ValidationFault(GSTLifecycleError):
    """Malformed or missing request payload field."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class GatewayFault(GSTLifecycleError):
    """Operational failure talking to the compliance gateway. Retryable."""

    def __init__(self, message: str, reason: str = "gateway") -> None:
        super().__init__(message)
        self.reason = reason


class GatewayAuthFailed(GatewayFault):
    """Gateway refused the credentials."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason="auth")


class GatewayTimeout(GatewayFault):
    """Gateway did not answer in time; its disposition is unknown."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason="timeout")


class ConflictFault(GSTLifecycleError):
    """Document was modified concurrently; reload and retry."""

    def __init__(self, document_number: str) -> None:
        super().__init__(f"Document {document_number} was modified concurrently")
        self.document_number = document_number
