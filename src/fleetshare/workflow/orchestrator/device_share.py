"""
Device share entry point.

Checks that the device can be shared, then runs the share or unshare flow.
Nothing is written to either database before the eligibility check passes.
"""

from typing import Optional

from fleetshare.workflow.accessor import StoreAccessor
from fleetshare.workflow.enums import Phase
from fleetshare.workflow.exceptions import DeviceNotFound
from fleetshare.workflow.exceptions import NotShareable
from fleetshare.workflow.models import Device
from fleetshare.workflow.models import DeviceShareResult
from fleetshare.workflow.orchestrator.phase_tracker import PhaseHook
from fleetshare.workflow.orchestrator.phase_tracker import PhaseTracker
from fleetshare.workflow.orchestrator.share_flow import share_to_target
from fleetshare.workflow.orchestrator.unshare_flow import unshare_from_target
from fleetshare.workflow.retry import RetryPolicy


def ineligibility_reason(device: Device) -> Optional[str]:
    """Why a device cannot be shared, or None when it can."""
    if not device.serial_number:
        return "device has no serial number"
    if not device.device_plan_billing_info:
        return "device has no billing plan record"
    return None


async def load_shareable_device(source: StoreAccessor, device_id: str, tracker: PhaseTracker) -> Device:
    """
    Read the device from source and check it can be shared.

    Raises:
        DeviceNotFound: No device with this id in source
        NotShareable: Missing serial number or billing plan record
    """
    async with tracker.phase(Phase.ELIGIBILITY):
        device = await source.get_device(device_id)
        if device is None:
            raise DeviceNotFound(f"Device {device_id} not found in source database: {source.database}")

        tracker.serial_number = device.serial_number
        reason = ineligibility_reason(device)
        if reason:
            raise NotShareable(f"Device {device_id} not shareable: {reason}")

    tracker.completed(Phase.ELIGIBILITY)
    return device


async def share_device(
    source: StoreAccessor,
    target: StoreAccessor,
    device_id: str,
    share: bool,
    auto_accept: bool = True,
    policy: Optional[RetryPolicy] = None,
    on_event: Optional[PhaseHook] = None,
) -> DeviceShareResult:
    """
    Share a device from source to target, or stop sharing it.

    Args:
        source: Accessor for the database that owns the device
        target: Accessor for the other database
        device_id: Device id in the source database
        share: True to share, False to terminate shares and archive the target device
        auto_accept: Rely on the target's auto-accept setting instead of approving explicitly
        policy: Polling budget for every cross-database wait
        on_event: Optional callback receiving one PhaseEvent per phase transition

    Returns:
        DeviceShareResult with the target device (None when unsharing found none)

    Raises:
        DeviceShareError: Subclass naming the failed phase; partial progress is left in place
    """
    tracker = PhaseTracker(device_id, on_event=on_event)
    source_device = await load_shareable_device(source, device_id, tracker)

    if share:
        target_device = await share_to_target(
            source, target, source_device, tracker, auto_accept=auto_accept, policy=policy
        )
    else:
        target_device = await unshare_from_target(source, target, source_device, tracker, policy=policy)

    return DeviceShareResult(success=True, target_device=target_device)
