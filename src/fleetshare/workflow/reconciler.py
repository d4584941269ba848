"""
Device Attribute Reconciler

The device record the target database creates while accepting a share does
not reliably carry the source's name, plate or groups, so after every share
those attributes are written onto it unconditionally.
"""

from typing import Any
from typing import Dict
from typing import Optional

from loguru import logger

from fleetshare.workflow.accessor import StoreAccessor
from fleetshare.workflow.enums import DeviceCategoryGroup
from fleetshare.workflow.enums import Phase
from fleetshare.workflow.exceptions import PropagationTimeout
from fleetshare.workflow.models import Device
from fleetshare.workflow.retry import RetryPolicy
from fleetshare.workflow.retry import retry_with_backoff

CATEGORY_GROUP_IDS = frozenset(group.value for group in DeviceCategoryGroup)


def category_group_id(device: Device) -> Optional[str]:
    """First of the device's groups that is a built-in asset category, if any."""
    for group in device.groups:
        if group.id in CATEGORY_GROUP_IDS:
            return group.id
    return None


def build_target_attrs(source_device: Device) -> Dict[str, Any]:
    """
    Attributes forced onto the target device.

    Args:
        source_device: Device as stored in the source database

    Returns:
        Store-named fields: name, serialNumber, licensePlate, licenseState (null
        when the source has none) and, when the source has a category group, groups
        replaced by that single group
    """
    # Missing source values are sent as null so stale target values are cleared
    attrs: Dict[str, Any] = {
        "name": source_device.name,
        "serialNumber": source_device.serial_number,
        "licensePlate": source_device.license_plate,
        "licenseState": source_device.license_state,
    }
    group_id = category_group_id(source_device)
    if group_id:
        attrs["groups"] = [{"id": group_id}]
    return attrs


async def reconcile_target_device(
    source_device: Device,
    target: StoreAccessor,
    policy: Optional[RetryPolicy] = None,
) -> Device:
    """
    Overwrite the target device's attributes with the source's.

    Args:
        source_device: Device as stored in the source database
        target: Accessor for the target database
        policy: Polling budget while the target device becomes visible

    Returns:
        The target device with the reconciled attributes applied

    Raises:
        PropagationTimeout: The target database never exposed a device with the serial number
    """
    serial_number = source_device.serial_number
    lookup = await retry_with_backoff(
        lambda: target.get_device_by_serial(serial_number),
        policy,
        description="Target device lookup",
        database=target.database,
        serial_number=serial_number,
    )
    if not lookup.found:
        raise PropagationTimeout(
            f"Device {serial_number} not found in target database: {target.database}",
            attempts=lookup.attempts,
            elapsed_ms=lookup.elapsed_ms,
            phase=Phase.RECONCILE.value,
        )

    target_device: Device = lookup.result
    attrs = build_target_attrs(source_device)
    await target.update_device(target_device.id, attrs)

    logger.info(
        "Reconciled target device attributes",
        database=target.database,
        device_id=target_device.id,
        serial_number=serial_number,
        group_id=attrs.get("groups", [{}])[0].get("id"),
    )
    return Device.model_validate({**target_device.to_entity(), **attrs})
