"""Error handling for the FastAPI application and device share workflow exceptions."""

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

from fleetshare.monitoring.logger import log_response_info
from fleetshare.workflow.exceptions import DeviceNotFound
from fleetshare.workflow.exceptions import DeviceShareError
from fleetshare.workflow.exceptions import NotShareable
from fleetshare.workflow.exceptions import RemoteRejected
from fleetshare.workflow.exceptions import RemoteStoreError
from fleetshare.workflow.exceptions import RemoteUnavailable
from fleetshare.workflow.exceptions import WaitTimeout

# Explicit exports
__all__ = [
    "handle_broad_exceptions",
    "handle_device_share_errors",
    "handle_pydantic_validation_errors",
    "status_code_for",
]


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"detail": "Internal server error", "error_type": type(err).__name__}

        logger.opt(exception=err).bind(
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            error_message=str(err),
        ).error(f"Unhandled exception: {type(err).__name__}: {str(err)}")

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    error_response = {
        "detail": [
            {
                "msg": error["msg"],
                "input": error["input"],
            }
            for error in errors
        ]
    }

    logger.warning(
        f"Validation error: {len(errors)} validation errors",
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=errors,
    )

    response = JSONResponse(
        status_code=422,
        content=error_response,
    )
    log_response_info(response)

    return response


def status_code_for(exc: DeviceShareError) -> int:
    """
    Map a workflow error to an HTTP status code.

    - DeviceNotFound -> 404 Not Found
    - NotShareable -> 422 Unprocessable Entity
    - WaitTimeout (propagation/activation/termination) -> 504 Gateway Timeout
    - RemoteUnavailable -> 503 Service Unavailable
    - RemoteRejected -> 502 Bad Gateway (the store refused the call)
    - Anything else -> 500
    """
    if isinstance(exc, DeviceNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, NotShareable):
        return 422
    if isinstance(exc, WaitTimeout):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, RemoteUnavailable):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, RemoteRejected):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_device_share_errors(request: Request, exc: DeviceShareError) -> JSONResponse:
    """
    Convert device share workflow errors to HTTP responses.

    Parameters
    ----------
    request : Request
        FastAPI request object
    exc : DeviceShareError
        Workflow exception

    Returns
    -------
    JSONResponse
        HTTP response with the failed phase and, for timeouts, the polling accounting
    """
    http_status = status_code_for(exc)
    error_type = type(exc).__name__
    error_response = {
        "detail": exc.message,
        "error_type": error_type,
        "phase": exc.phase,
    }
    if isinstance(exc, WaitTimeout):
        error_response["attempts"] = exc.attempts
        error_response["elapsed_ms"] = exc.elapsed_ms
    if isinstance(exc, RemoteStoreError):
        error_response["database"] = exc.database
        error_response["store_error"] = exc.error_name

    bound = logger.bind(
        http_status=http_status,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
        phase=exc.phase,
    )
    log = bound.warning if http_status < 500 else bound.error
    log(f"Device share error: {error_type}: {exc.message}")

    response = JSONResponse(status_code=http_status, content=error_response)
    log_response_info(response)
    return response
