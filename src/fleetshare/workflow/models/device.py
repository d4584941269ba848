"""
Device Model

Store entity for the telematics device being shared.
"""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class GroupRef(BaseModel):
    """Reference to a group by id."""

    model_config = ConfigDict(extra="allow")

    id: str


class Device(BaseModel):
    """Device entity as returned by the store's Get."""

    # Unknown store fields survive a round trip through Set
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: Optional[str] = None
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    license_plate: Optional[str] = Field(default=None, alias="licensePlate")
    license_state: Optional[str] = Field(default=None, alias="licenseState")
    groups: List[GroupRef] = Field(default_factory=list)
    device_plan_billing_info: List[Dict[str, Any]] = Field(default_factory=list, alias="devicePlanBillingInfo")
    active_from: Optional[str] = Field(default=None, alias="activeFrom")
    active_to: Optional[str] = Field(default=None, alias="activeTo")

    @field_validator("groups", "device_plan_billing_info", mode="before")
    @classmethod
    def validate_null_lists(cls, v):
        """Treat a null list from the store as empty."""
        return v or []

    def to_entity(self) -> Dict[str, Any]:
        """Serialize with store field names for Set."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
