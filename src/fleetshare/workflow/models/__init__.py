"""
Workflow Models Module

Pydantic models for the store entities the device share workflow touches:
- Device (the shared asset)
- DeviceShare (one database's leg of a share)
- SystemSettings (auto-accept toggle)
- DeviceShareResult (invocation outcome)
"""

from fleetshare.workflow.models.device import Device, GroupRef
from fleetshare.workflow.models.device_share import DeviceShare
from fleetshare.workflow.models.result import DeviceShareResult
from fleetshare.workflow.models.system_settings import SystemSettings

__all__ = [
    "Device",
    "GroupRef",
    "DeviceShare",
    "SystemSettings",
    "DeviceShareResult",
]
