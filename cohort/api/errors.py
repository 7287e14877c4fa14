"""Translation of membership errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cohort.core.errors import ErrorKind, MembershipError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_A_MEMBER: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_MEMBER: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_REQUEST: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_PROCESSED: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.CAPACITY_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.OWNER_CANNOT_LEAVE: status.HTTP_403_FORBIDDEN,
    ErrorKind.SELF_REMOVAL: status.HTTP_403_FORBIDDEN,
    ErrorKind.GENERATION_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def membership_error_handler(request: Request, exc: MembershipError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind.value} ({exc.message})")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.kind.value},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MembershipError, membership_error_handler)
