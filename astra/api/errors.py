"""
Mapping of domain errors to HTTP responses

Services raise AstraError subclasses and never see HTTP; this is the only
place where an error kind becomes a status code.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from astra.core.exceptions import AstraError, NotInvitedError, VerifierUnavailableError

STATUS_BY_KIND = {
    "validation": 400,
    "authentication": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "expired": 410,
    "capacity_exhausted": 503,
    "external_verification": 400,
}

# Subclasses whose status differs from their kind's
STATUS_OVERRIDES = {
    NotInvitedError: 403,
    VerifierUnavailableError: 503,
}


def status_for(exc: AstraError) -> int:
    for error_class, status_code in STATUS_OVERRIDES.items():
        if isinstance(exc, error_class):
            return status_code
    return STATUS_BY_KIND.get(exc.kind, 500)


async def astra_error_handler(request: Request, exc: AstraError) -> JSONResponse:
    """
    Handle expected domain errors - status from the error kind
    """
    status_code = status_for(exc)

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    return JSONResponse(status_code=status_code, content=exc.to_dict())
