"""
SystemSettings Model

Per-database settings record. Only the auto-accept flag is interpreted;
dataVersion is an opaque concurrency token the store checks on Set.
"""

from typing import Any
from typing import Dict

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class SystemSettings(BaseModel):
    """SystemSettings entity."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    data_version: Any = Field(default=None, alias="dataVersion")
    enable_data_share_auto_accept: bool = Field(default=False, alias="enableDataShareAutoAccept")

    def to_entity(self) -> Dict[str, Any]:
        """Serialize with store field names for Set."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
