# portal/core/errors.py
from typing import Dict, Optional


class PortalError(Exception):
    """Base class for errors raised by the service layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PortalError):
    """One or more fields failed their format checks."""

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class ConfigurationError(PortalError):
    """Required configuration (credentials, URLs) is missing."""


class RemoteCallError(PortalError):
    """A remote function, external API or storage call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(PortalError):
    pass


class ConflictError(PortalError):
    pass


class AuthenticationError(PortalError):
    pass
