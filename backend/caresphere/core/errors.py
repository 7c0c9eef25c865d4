"""
Domain errors raised by services and rendered as error envelopes by the app
"""

from typing import Any, Dict, Optional


class CareSphereError(Exception):
    """Base class for all domain errors"""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An internal error occurred", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(CareSphereError):
    """A required credential or setting is missing"""

    error_code = "CONFIGURATION_ERROR"


class NotFoundError(CareSphereError):
    """Remote resource or local row is absent"""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class UpstreamError(CareSphereError):
    """A remote provider answered with a non-2xx, non-404 status"""

    status_code = 502
    error_code = "UPSTREAM_ERROR"

    def __init__(self, provider: str, upstream_status: int, body: str):
        super().__init__(
            f"{provider} API error {upstream_status}: {body}",
            details={"provider": provider, "status": upstream_status},
        )
        self.provider = provider
        self.upstream_status = upstream_status
        self.body = body


class ValidationError(CareSphereError):
    """Malformed or disallowed input"""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthorizationError(CareSphereError):
    """Authenticated caller lacks permission"""

    status_code = 403
    error_code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class EmailSendError(CareSphereError):
    """The messaging provider rejected or failed a send"""

    status_code = 502

    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message, details={"code": code})
        self.code = code
        self.error_code = code

