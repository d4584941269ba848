from typing import List

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import status
from loguru import logger

from fleetshare.dependencies import get_session_manager
from fleetshare.dependencies import get_settings
from fleetshare.monitoring.logger import log_request_info
from fleetshare.schemas.schemas import DeviceShareRequest
from fleetshare.schemas.schemas import DeviceShareResponse
from fleetshare.settings import Settings
from fleetshare.store.client import StoreClient
from fleetshare.store.session_manager import SessionManager
from fleetshare.workflow.accessor import StoreAccessor
from fleetshare.workflow.orchestrator import PhaseEvent
from fleetshare.workflow.orchestrator import share_device

ROUTER_DEVICE_SHARE = APIRouter(tags=["Device Shares"])

_ERROR_RESPONSES = {
    status.HTTP_404_NOT_FOUND: {
        "description": "Device not found in the source database",
        "content": {"application/json": {"example": {"detail": "Device b1 not found", "error_type": "DeviceNotFound"}}},
    },
    422: {
        "description": "Device has no serial number or billing plan record",
        "content": {
            "application/json": {
                "example": {"detail": "Device b1 not shareable", "error_type": "NotShareable", "phase": "eligibility"}
            }
        },
    },
    status.HTTP_502_BAD_GATEWAY: {"description": "A database rejected a call"},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "A database could not be reached"},
    status.HTTP_504_GATEWAY_TIMEOUT: {
        "description": "A cross-database state change did not arrive within the polling budget",
        "content": {
            "application/json": {
                "example": {
                    "detail": "Device share not found in target database: fleet_b after 12 attempts (7412ms)",
                    "error_type": "PropagationTimeout",
                    "phase": "propagation",
                    "attempts": 12,
                    "elapsed_ms": 7412,
                }
            }
        },
    },
}


async def _run_device_share(
    request: Request,
    device_id: str,
    body: DeviceShareRequest,
    share: bool,
    settings: Settings,
    session_manager: SessionManager,
) -> DeviceShareResponse:
    """Build store accessors for both databases and run one share or unshare."""
    log_request_info(request)
    action = "share" if share else "unshare"
    auto_accept = settings.auto_accept if body.auto_accept is None else body.auto_accept
    events: List[PhaseEvent] = []

    logger.info(
        f"Device {action} requested",
        device_id=device_id,
        source_database=body.source_database,
        target_database=body.target_database,
        auto_accept=auto_accept,
    )

    async with httpx.AsyncClient(timeout=settings.store_request_timeout) as http:
        source = StoreAccessor(
            StoreClient(
                body.source_database,
                session_manager,
                server=body.source_server or settings.store_server,
                http=http,
            )
        )
        target = StoreAccessor(
            StoreClient(
                body.target_database,
                session_manager,
                server=body.target_server or settings.store_server,
                http=http,
            )
        )
        result = await share_device(
            source,
            target,
            device_id,
            share,
            auto_accept=auto_accept,
            policy=settings.retry_policy(),
            on_event=events.append,
        )

    logger.success(f"Device {action} completed", device_id=device_id, target_database=body.target_database)
    return DeviceShareResponse(
        success=result.success,
        device_id=device_id,
        action=action,
        target_device=result.target_device,
        events=events,
    )


@ROUTER_DEVICE_SHARE.post("/devices/{device_id}/share", responses=_ERROR_RESPONSES)
async def share_device_to_target(
    request: Request,
    device_id: str,
    body: DeviceShareRequest,
    settings: Settings = Depends(get_settings),
    session_manager: SessionManager = Depends(get_session_manager),
) -> DeviceShareResponse:
    """Share a device from the source database to the target database. Safe to call again after a failure."""
    return await _run_device_share(request, device_id, body, True, settings, session_manager)


@ROUTER_DEVICE_SHARE.post("/devices/{device_id}/unshare", responses=_ERROR_RESPONSES)
async def unshare_device_from_target(
    request: Request,
    device_id: str,
    body: DeviceShareRequest,
    settings: Settings = Depends(get_settings),
    session_manager: SessionManager = Depends(get_session_manager),
) -> DeviceShareResponse:
    """Terminate every share of a device and archive it in the target database."""
    return await _run_device_share(request, device_id, body, False, settings, session_manager)
