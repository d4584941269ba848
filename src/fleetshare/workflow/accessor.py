"""
Store Accessor

Narrow reads and writes against one database's Device, DeviceShare and
SystemSettings records. The same accessor type is used for the source and the
target database. Nothing here retries; the orchestrator decides when to poll.
"""

from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Protocol

from loguru import logger

from fleetshare.workflow.enums import ShareStatus
from fleetshare.workflow.enums import StoreMethod
from fleetshare.workflow.enums import TypeName
from fleetshare.workflow.exceptions import RemoteRejected
from fleetshare.workflow.models import Device
from fleetshare.workflow.models import DeviceShare
from fleetshare.workflow.models import SystemSettings

# Keyword filter name -> DeviceShare search field
_SHARE_FILTER_FIELDS = {
    "id": "id",
    "serial_number": "serialNumber",
    "admin_id": "myAdminId",
    "status": "shareStatus",
}


class StoreCaller(Protocol):
    """Anything that can send a credentialed call to one database."""

    database: str

    async def call(self, method: str, **params: Any) -> Any:
        ...


def share_search(**filters: Any) -> Dict[str, Any]:
    """
    Build a DeviceShare search object from keyword filters.

    Args:
        **filters: Any of id, serial_number, admin_id, status (None values are dropped)

    Returns:
        Search dict with store field names
    """
    search: Dict[str, Any] = {}
    for key, value in filters.items():
        if key not in _SHARE_FILTER_FIELDS:
            raise ValueError(f"Unsupported DeviceShare filter: {key}")
        if value is None:
            continue
        search[_SHARE_FILTER_FIELDS[key]] = value.value if isinstance(value, ShareStatus) else value
    return search


class StoreAccessor:
    """Typed Get/Add/Set operations for one database."""

    def __init__(self, client: StoreCaller):
        self.client = client

    @property
    def database(self) -> str:
        return self.client.database

    # ── Devices ────────────────────────────────────────────────────────────

    async def get_devices(self, search: Dict[str, Any]) -> List[Device]:
        rows = await self.client.call(StoreMethod.GET.value, typeName=TypeName.DEVICE.value, search=search)
        return [Device.model_validate(row) for row in rows or []]

    async def get_device(self, device_id: str) -> Optional[Device]:
        """First device with this id, or None."""
        devices = await self.get_devices({"id": device_id})
        return devices[0] if devices else None

    async def get_device_by_serial(self, serial_number: str) -> Optional[Device]:
        """First device with this serial number, or None."""
        devices = await self.get_devices({"serialNumber": serial_number})
        return devices[0] if devices else None

    async def update_device(self, device_id: str, attrs: Dict[str, Any]) -> None:
        """Set a device entity made of its id plus the given attributes."""
        logger.debug("Updating device", database=self.database, device_id=device_id, fields=sorted(attrs))
        await self.client.call(
            StoreMethod.SET.value,
            typeName=TypeName.DEVICE.value,
            entity={"id": device_id, **attrs},
        )

    async def archive_device(self, device_id: str) -> str:
        """Archive a device by setting activeTo to now. Returns the timestamp written."""
        active_to = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        await self.update_device(device_id, {"activeTo": active_to})
        logger.info("Archived device", database=self.database, device_id=device_id, active_to=active_to)
        return active_to

    # ── Device shares ──────────────────────────────────────────────────────

    async def get_shares(self, **filters: Any) -> List[DeviceShare]:
        """All DeviceShare records matching the filters, in store order."""
        rows = await self.client.call(
            StoreMethod.GET.value,
            typeName=TypeName.DEVICE_SHARE.value,
            search=share_search(**filters),
        )
        return [DeviceShare.model_validate(row) for row in rows or []]

    async def get_share(self, **filters: Any) -> Optional[DeviceShare]:
        """First matching DeviceShare, or None. Multiplicity is the caller's problem."""
        shares = await self.get_shares(**filters)
        return shares[0] if shares else None

    async def create_share(self, target_database: str, serial_number: str) -> str:
        """
        Add a DeviceShare from this database to the target database.

        Args:
            target_database: Database receiving the device
            serial_number: Serial number of the device to share

        Returns:
            Id of the new DeviceShare in this database
        """
        share_id = await self.client.call(
            StoreMethod.ADD.value,
            typeName=TypeName.DEVICE_SHARE.value,
            entity={
                "serialNumber": serial_number,
                "sourceDatabaseName": self.database,
                "targetDatabaseName": target_database,
            },
        )
        if not share_id:
            raise RemoteRejected(
                "Add DeviceShare returned no id",
                database=self.database,
                method=StoreMethod.ADD.value,
            )
        logger.info(
            "Created device share",
            database=self.database,
            target_database=target_database,
            serial_number=serial_number,
            share_id=share_id,
        )
        return str(share_id)

    async def set_share_status(self, share: DeviceShare, status: ShareStatus) -> DeviceShare:
        """Write the full share record back with only its status replaced."""
        updated = share.with_status(status)
        await self.client.call(
            StoreMethod.SET.value,
            typeName=TypeName.DEVICE_SHARE.value,
            entity=updated.to_entity(),
        )
        logger.info(
            "Device share status set",
            database=self.database,
            admin_id=share.admin_id,
            from_status=share.share_status,
            to_status=status,
        )
        return updated

    # ── System settings ────────────────────────────────────────────────────

    async def get_system_settings(self) -> SystemSettings:
        rows = await self.client.call(StoreMethod.GET.value, typeName=TypeName.SYSTEM_SETTINGS.value)
        if not rows:
            raise RemoteRejected(
                "SystemSettings not returned",
                database=self.database,
                method=StoreMethod.GET.value,
            )
        return SystemSettings.model_validate(rows[0])

    async def set_auto_accept(self, enabled: bool) -> SystemSettings:
        """
        Read-modify-write the auto-accept flag.

        Nothing is written when the flag already has the wanted value. Otherwise
        the dataVersion read here is echoed back unchanged; the store rejects
        the Set if someone else updated the settings in between.
        """
        current = await self.get_system_settings()
        if current.enable_data_share_auto_accept == enabled:
            logger.debug("Data share auto-accept already set", database=self.database, enabled=enabled)
            return current

        updated = current.model_copy(update={"enable_data_share_auto_accept": enabled})
        await self.client.call(
            StoreMethod.SET.value,
            typeName=TypeName.SYSTEM_SETTINGS.value,
            entity=updated.to_entity(),
        )
        logger.info("Data share auto-accept set", database=self.database, enabled=enabled)
        return updated
