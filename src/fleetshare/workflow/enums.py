"""
Workflow Enums

All enum types used throughout the device share workflow.
Values must match exactly with the store API's wire values.
"""

from enum import Enum

# ════════════════════════════════════════════════════════════════════════════
# Store API Enums
# ════════════════════════════════════════════════════════════════════════════


class TypeName(str, Enum):
    """Entity kinds the workflow reads and writes."""

    DEVICE = "Device"
    DEVICE_SHARE = "DeviceShare"
    SYSTEM_SETTINGS = "SystemSettings"


class StoreMethod(str, Enum):
    """JSON-RPC methods used against the store API."""

    AUTHENTICATE = "Authenticate"
    GET = "Get"
    ADD = "Add"
    SET = "Set"


# ════════════════════════════════════════════════════════════════════════════
# Device Share Enums
# ════════════════════════════════════════════════════════════════════════════


class ShareStatus(str, Enum):
    """DeviceShare status as stored in each database."""

    PENDING = "Pending"
    REQUEST_APPROVED = "RequestApproved"
    ACTIVE = "Active"
    REQUEST_TERMINATED = "RequestTerminated"
    TERMINATED = "Terminated"
    REQUEST_CANCELLED = "RequestCancelled"


class DeviceCategoryGroup(str, Enum):
    """Built-in asset category groups copied onto the target device."""

    VEHICLE = "GroupVehicleId"
    TRAILER = "GroupTrailerId"
    CONTAINER = "GroupContainerId"
    EQUIPMENT = "GroupEquipmentId"


# ════════════════════════════════════════════════════════════════════════════
# Observability Enums
# ════════════════════════════════════════════════════════════════════════════


class Phase(str, Enum):
    """Workflow phases reported through PhaseTracker."""

    ELIGIBILITY = "eligibility"
    AUTO_ACCEPT = "auto_accept"
    EXISTING_SHARE = "existing_share"
    CREATE_SHARE = "create_share"
    PROPAGATION = "propagation"
    APPROVAL = "approval"
    ACTIVATION = "activation"
    RECONCILE = "reconcile"
    TERMINATE = "terminate"
    CANCEL = "cancel"
    ARCHIVE = "archive"


class PhaseOutcome(str, Enum):
    """Result of a single workflow phase."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    REUSED = "reused"
    FAILED = "failed"
