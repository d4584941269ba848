####################################
# --- Request/response schemas --- #
####################################

from typing import List
from typing import Literal
from typing import Optional

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from fleetshare.workflow.models import Device
from fleetshare.workflow.orchestrator.phase_tracker import PhaseEvent


class DeviceShareRequest(BaseModel):
    """Databases taking part in a share or unshare."""

    source_database: str = Field(..., description="Database that owns the device")
    target_database: str = Field(..., description="Database the device is shared to")
    source_server: Optional[str] = Field(default=None, description="Server hosting the source database")
    target_server: Optional[str] = Field(default=None, description="Server hosting the target database")
    auto_accept: Optional[bool] = Field(
        default=None,
        description="Rely on the target's auto-accept setting (defaults to the service setting)",
    )

    @field_validator("source_database", "target_database")
    @classmethod
    def validate_database_name(cls, v):
        """Validate that database names are not blank."""
        v = v.strip()
        if not v:
            raise ValueError("database name must not be empty")
        return v

    @model_validator(mode="after")
    def validate_distinct_databases(self):
        """Validate that a device is not shared to the database it lives in."""
        if self.source_database.lower() == self.target_database.lower():
            raise ValueError("source_database and target_database must differ")
        return self


class DeviceShareResponse(BaseModel):
    """Outcome of a share or unshare."""

    success: bool
    device_id: str
    action: Literal["share", "unshare"]
    target_device: Optional[Device] = None
    events: List[PhaseEvent] = Field(default_factory=list)
