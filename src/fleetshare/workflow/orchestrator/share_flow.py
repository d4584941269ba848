"""
Device share: source database -> target database.

Every step first asks the databases where the handshake stands, so a run that
failed halfway can simply be invoked again:

- Active share already in target: nothing to create or approve.
- Pending share already in source: reuse it instead of adding another.
- Otherwise: add the share in source and wait for it to show up in target.

Then, when the target leg is still Pending, approve it (unless the target
auto-accepts) and wait for the source leg to turn Active. The target device's
attributes are reconciled at the end of every run.
"""

from typing import Optional

from fleetshare.workflow.accessor import StoreAccessor
from fleetshare.workflow.enums import Phase
from fleetshare.workflow.enums import ShareStatus
from fleetshare.workflow.enums import StoreMethod
from fleetshare.workflow.exceptions import ActivationTimeout
from fleetshare.workflow.exceptions import PropagationTimeout
from fleetshare.workflow.exceptions import RemoteRejected
from fleetshare.workflow.models import Device
from fleetshare.workflow.models import DeviceShare
from fleetshare.workflow.orchestrator.phase_tracker import PhaseTracker
from fleetshare.workflow.reconciler import reconcile_target_device
from fleetshare.workflow.retry import RetryPolicy
from fleetshare.workflow.retry import retry_with_backoff


def _require_admin_id(share: DeviceShare, database: str) -> str:
    if not share.admin_id:
        raise RemoteRejected(
            f"DeviceShare {share.id} in {database} has no myAdminId",
            database=database,
            method=StoreMethod.GET.value,
        )
    return share.admin_id


async def _find_or_create_source_share(
    source: StoreAccessor,
    target: StoreAccessor,
    serial_number: str,
    tracker: PhaseTracker,
) -> DeviceShare:
    """Reuse a Pending share left in source by an earlier run, or add a new one."""
    async with tracker.phase(Phase.CREATE_SHARE):
        source_share = await source.get_share(serial_number=serial_number, status=ShareStatus.PENDING)
        if source_share is not None:
            _require_admin_id(source_share, source.database)
            tracker.reused(Phase.CREATE_SHARE, f"Pending share already found in source database: {source.database}")
            return source_share

        share_id = await source.create_share(target.database, serial_number)
        # The correlating myAdminId is only known after reading the new record back
        source_share = await source.get_share(id=share_id)
        if source_share is None:
            raise RemoteRejected(
                f"DeviceShare {share_id} not found in source database after Add",
                database=source.database,
                method=StoreMethod.GET.value,
            )
        _require_admin_id(source_share, source.database)

    tracker.completed(Phase.CREATE_SHARE, f"Created share {share_id} in source database: {source.database}")
    return source_share


async def _await_target_share(
    target: StoreAccessor,
    admin_id: str,
    tracker: PhaseTracker,
    policy: Optional[RetryPolicy],
) -> DeviceShare:
    """Poll target until the share's counterpart (any status) is visible."""
    async with tracker.phase(Phase.PROPAGATION):
        lookup = await retry_with_backoff(
            lambda: target.get_share(admin_id=admin_id),
            policy,
            description="Target device share lookup",
            database=target.database,
            admin_id=admin_id,
        )
        if not lookup.found:
            raise PropagationTimeout(
                f"Device share not found in target database: {target.database}",
                attempts=lookup.attempts,
                elapsed_ms=lookup.elapsed_ms,
            )

    tracker.completed(Phase.PROPAGATION, f"Visible in target after {lookup.attempts} attempts ({lookup.elapsed_ms}ms)")
    return lookup.result


async def _approve_and_await_activation(
    source: StoreAccessor,
    target: StoreAccessor,
    target_share: DeviceShare,
    tracker: PhaseTracker,
    auto_accept: bool,
    policy: Optional[RetryPolicy],
) -> None:
    """Approve a Pending target share when needed, then wait for the source leg to turn Active."""
    if target_share.share_status != ShareStatus.PENDING:
        status = target_share.share_status.value if target_share.share_status else None
        tracker.skipped(
            Phase.ACTIVATION,
            f'Target database DeviceShare status is "{status}", not "{ShareStatus.PENDING.value}"',
        )
        return

    if auto_accept:
        tracker.skipped(Phase.APPROVAL, f"Relying on auto-accept in target database: {target.database}")
    else:
        async with tracker.phase(Phase.APPROVAL):
            await target.set_share_status(target_share, ShareStatus.REQUEST_APPROVED)
        tracker.completed(Phase.APPROVAL, f"Approved in target database: {target.database}")

    # Activation is asynchronous even when auto-accept did the approving
    admin_id = target_share.admin_id
    async with tracker.phase(Phase.ACTIVATION):
        lookup = await retry_with_backoff(
            lambda: source.get_share(admin_id=admin_id, status=ShareStatus.ACTIVE),
            policy,
            description="Source device share activation",
            database=source.database,
            admin_id=admin_id,
        )
        if not lookup.found:
            raise ActivationTimeout(
                "Source database device share did not become Active",
                attempts=lookup.attempts,
                elapsed_ms=lookup.elapsed_ms,
            )

    tracker.completed(Phase.ACTIVATION, f"Active after {lookup.attempts} attempts ({lookup.elapsed_ms}ms)")


async def share_to_target(
    source: StoreAccessor,
    target: StoreAccessor,
    source_device: Device,
    tracker: PhaseTracker,
    auto_accept: bool = True,
    policy: Optional[RetryPolicy] = None,
) -> Device:
    """
    Share a device from source to target and reconcile the target device.

    Args:
        source: Accessor for the database that owns the device
        target: Accessor for the database receiving the device
        source_device: Eligible device read from source
        tracker: Phase reporting for this run
        auto_accept: Value written to the target's auto-accept setting; when False
            the target share is approved explicitly
        policy: Polling budget for every wait

    Returns:
        The target device with reconciled attributes

    Raises:
        PropagationTimeout: The share never became visible in target
        ActivationTimeout: The source share never became Active
        RemoteStoreError: A store call failed
    """
    serial_number = source_device.serial_number

    async with tracker.phase(Phase.AUTO_ACCEPT):
        await target.set_auto_accept(auto_accept)
    tracker.completed(Phase.AUTO_ACCEPT, f"enableDataShareAutoAccept={auto_accept} in {target.database}")

    async with tracker.phase(Phase.EXISTING_SHARE):
        target_share = await target.get_share(serial_number=serial_number, status=ShareStatus.ACTIVE)

    if target_share is not None:
        tracker.reused(Phase.EXISTING_SHARE, f"Device already shared to: {target.database}")
    else:
        tracker.completed(Phase.EXISTING_SHARE, f"No active share in target database: {target.database}")
        source_share = await _find_or_create_source_share(source, target, serial_number, tracker)
        target_share = await _await_target_share(target, source_share.admin_id, tracker, policy)

    await _approve_and_await_activation(source, target, target_share, tracker, auto_accept, policy)

    async with tracker.phase(Phase.RECONCILE):
        target_device = await reconcile_target_device(source_device, target, policy)
    tracker.completed(Phase.RECONCILE, f"Target device {target_device.id} updated")

    return target_device
