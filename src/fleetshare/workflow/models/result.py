"""
DeviceShareResult Model

Outcome of one share or unshare invocation.
"""

from typing import Optional

from pydantic import BaseModel

from fleetshare.workflow.models.device import Device


class DeviceShareResult(BaseModel):
    """Success flag plus the target device, when one was resolved."""

    success: bool
    target_device: Optional[Device] = None
