"""
DeviceShare Model

One database's leg of a cross-database device share.
"""

from typing import Any
from typing import Dict
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from fleetshare.workflow.enums import ShareStatus


class DeviceShare(BaseModel):
    """DeviceShare entity. Both legs of one share carry the same myAdminId."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    source_database_name: Optional[str] = Field(default=None, alias="sourceDatabaseName")
    target_database_name: Optional[str] = Field(default=None, alias="targetDatabaseName")
    admin_id: Optional[str] = Field(default=None, alias="myAdminId")
    share_status: Optional[ShareStatus] = Field(default=None, alias="shareStatus")

    def with_status(self, status: ShareStatus) -> "DeviceShare":
        """Copy of this share with only the status replaced."""
        return self.model_copy(update={"share_status": status})

    def to_entity(self) -> Dict[str, Any]:
        """Serialize with store field names for Set."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
