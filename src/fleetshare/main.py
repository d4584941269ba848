from textwrap import dedent

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from loguru import logger

from fleetshare.errors import handle_broad_exceptions
from fleetshare.errors import handle_device_share_errors
from fleetshare.errors import handle_pydantic_validation_errors
from fleetshare.monitoring.logger import configure_logger
from fleetshare.routes.routes_device_share import ROUTER_DEVICE_SHARE
from fleetshare.routes.routes_health import ROUTER_HEALTH
from fleetshare.settings import Settings
from fleetshare.store.session_manager import SessionManager
from fleetshare.workflow import __version__
from fleetshare.workflow.exceptions import DeviceShareError


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded from environment variables (or a local .env file) via pydantic-settings.
    """
    settings = settings or Settings()

    configure_logger(level=settings.log_level, serialize=settings.log_serialize)

    logger.info(
        "Configuration loaded successfully",
        store_server=settings.store_server,
        store_username_set=bool(settings.store_username),
        auto_accept=settings.auto_accept,
        retry_schedule_ms=settings.retry_policy().schedule(),
    )

    app = FastAPI(
        title="Fleet Device Share API",
        version=__version__,
        description=dedent(
            """
        Share a device from one fleet database to another, or stop sharing it.

        | Endpoint | Notes |
        | --- | --- |
        | `POST /api/devices/{device_id}/share` | Safe to repeat after a failure; existing shares are reused |
        | `POST /api/devices/{device_id}/unshare` | Terminates or cancels every share and archives the target device |
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    # Sessions are cached per (server, database) for the lifetime of the app
    app.state.session_manager = SessionManager(
        username=settings.store_username,
        password=settings.store_password,
    )
    logger.info("SessionManager initialized for in-memory session caching")

    app.include_router(ROUTER_HEALTH, prefix="/api")
    app.include_router(ROUTER_DEVICE_SHARE, prefix="/api")

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=DeviceShareError,
        handler=handle_device_share_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
