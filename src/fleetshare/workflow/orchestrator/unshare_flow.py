"""
Device unshare: tear down every share of a device, then archive the target device.

Termination can be requested from either database. It is requested from the
target first, because the source follows a target-side termination quickly
enough to wait for; the source is only used directly when the target holds no
Active counterpart. Pending shares can only be cancelled from the source.
"""

from typing import Optional

from loguru import logger

from fleetshare.workflow.accessor import StoreAccessor
from fleetshare.workflow.enums import Phase
from fleetshare.workflow.enums import ShareStatus
from fleetshare.workflow.exceptions import TerminationTimeout
from fleetshare.workflow.models import Device
from fleetshare.workflow.models import DeviceShare
from fleetshare.workflow.orchestrator.phase_tracker import PhaseTracker
from fleetshare.workflow.retry import RetryPolicy
from fleetshare.workflow.retry import retry_with_backoff


async def _terminate_share(
    source: StoreAccessor,
    target: StoreAccessor,
    source_share: DeviceShare,
    tracker: PhaseTracker,
    policy: Optional[RetryPolicy],
) -> None:
    admin_id = source_share.admin_id

    async with tracker.phase(Phase.TERMINATE):
        # Without myAdminId there is no safe way to find the target leg
        target_share = None
        if admin_id:
            target_share = await target.get_share(admin_id=admin_id, status=ShareStatus.ACTIVE)

        if target_share is None:
            await source.set_share_status(source_share, ShareStatus.REQUEST_TERMINATED)
            tracker.completed(Phase.TERMINATE, f"Share {admin_id} terminated from source database: {source.database}")
            return

        await target.set_share_status(target_share, ShareStatus.REQUEST_TERMINATED)
        lookup = await retry_with_backoff(
            lambda: source.get_share(admin_id=admin_id, status=ShareStatus.TERMINATED),
            policy,
            description="Source device share termination",
            database=source.database,
            admin_id=admin_id,
        )
        if not lookup.found:
            raise TerminationTimeout(
                "Source database device share did not become Terminated",
                attempts=lookup.attempts,
                elapsed_ms=lookup.elapsed_ms,
            )

    tracker.completed(
        Phase.TERMINATE,
        f"Share {admin_id} terminated from target database: {target.database} "
        f"after {lookup.attempts} attempts ({lookup.elapsed_ms}ms)",
    )


async def _cancel_share(source: StoreAccessor, source_share: DeviceShare, tracker: PhaseTracker) -> None:
    async with tracker.phase(Phase.CANCEL):
        await source.set_share_status(source_share, ShareStatus.REQUEST_CANCELLED)
    tracker.completed(Phase.CANCEL, f"Pending share {source_share.admin_id} cancelled in {source.database}")


async def unshare_from_target(
    source: StoreAccessor,
    target: StoreAccessor,
    source_device: Device,
    tracker: PhaseTracker,
    policy: Optional[RetryPolicy] = None,
) -> Optional[Device]:
    """
    Terminate or cancel every share of the device and archive the target device.

    Args:
        source: Accessor for the database that owns the device
        target: Accessor for the database the device was shared to
        source_device: Eligible device read from source
        tracker: Phase reporting for this run
        policy: Polling budget for target-side terminations

    Returns:
        The archived target device, or None when target holds no device with this serial

    Raises:
        TerminationTimeout: A target-side termination never reached the source share
        RemoteStoreError: A store call failed
    """
    serial_number = source_device.serial_number

    async with tracker.phase(Phase.EXISTING_SHARE):
        target_device = await target.get_device_by_serial(serial_number)
        source_shares = await source.get_shares(serial_number=serial_number)
    tracker.completed(
        Phase.EXISTING_SHARE,
        f"{len(source_shares)} share(s) in source database: {source.database}, "
        f"target device found: {target_device is not None}",
    )

    # Historical shares of the same device may coexist; each is handled on its own status
    for source_share in source_shares:
        if source_share.share_status == ShareStatus.ACTIVE:
            await _terminate_share(source, target, source_share, tracker, policy)
        elif source_share.share_status == ShareStatus.PENDING:
            await _cancel_share(source, source_share, tracker)
        else:
            logger.debug(
                "Leaving device share untouched",
                admin_id=source_share.admin_id,
                share_status=source_share.share_status,
            )

    if target_device is None:
        tracker.skipped(Phase.ARCHIVE, f"No device {serial_number} in target database: {target.database}")
        return None

    async with tracker.phase(Phase.ARCHIVE):
        active_to = await target.archive_device(target_device.id)
    tracker.completed(Phase.ARCHIVE, f"Target device {target_device.id} archived")

    return target_device.model_copy(update={"active_to": active_to})
