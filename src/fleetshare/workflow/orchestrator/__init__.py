"""
Workflow Orchestrator Module

Coordinates device share and unshare across a source and a target database.
"""

from fleetshare.workflow.orchestrator.device_share import share_device
from fleetshare.workflow.orchestrator.phase_tracker import PhaseEvent
from fleetshare.workflow.orchestrator.phase_tracker import PhaseTracker
from fleetshare.workflow.orchestrator.share_flow import share_to_target
from fleetshare.workflow.orchestrator.unshare_flow import unshare_from_target

__all__ = [
    "share_device",
    "share_to_target",
    "unshare_from_target",
    "PhaseEvent",
    "PhaseTracker",
]
