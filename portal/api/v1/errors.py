# portal/api/v1/errors.py
from fastapi import HTTPException

from portal.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PortalError,
    RemoteCallError,
    ValidationFailed,
)


def to_http(exc: PortalError) -> HTTPException:
    """Map a service-layer error onto the response the dashboard/forms expect."""
    if isinstance(exc, ValidationFailed):
        return HTTPException(status_code=422, detail={"message": exc.message, "errors": exc.errors})
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail=exc.message)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=exc.message)
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=500, detail=exc.message)
    if isinstance(exc, RemoteCallError):
        return HTTPException(status_code=502, detail=exc.message)
    return HTTPException(status_code=500, detail=exc.message)
