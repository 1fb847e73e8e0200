"""Map domain errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rackbox.exceptions import (
    DuplicateEmployee,
    DuplicateRack,
    LayoutStateError,
    NotFoundError,
    RackBoxError,
    UnauthorizedLayoutEdit,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; first matching class wins
STATUS_BY_ERROR: list[tuple[type[RackBoxError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateRack, status.HTTP_409_CONFLICT),
    (DuplicateEmployee, status.HTTP_409_CONFLICT),
    (LayoutStateError, status.HTTP_409_CONFLICT),
    (UnauthorizedLayoutEdit, status.HTTP_403_FORBIDDEN),
]


def status_for(exc: RackBoxError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the RackBoxError handler on an application."""

    @app.exception_handler(RackBoxError)
    async def rackbox_error_handler(request: Request, exc: RackBoxError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Unhandled domain error on %s: %s", request.url.path, exc)
        else:
            logger.debug("Domain error on %s: %s", request.url.path, exc)
        content = exc.to_dict()
        content["detail"] = exc.message
        return JSONResponse(status_code=status_code, content=content)
