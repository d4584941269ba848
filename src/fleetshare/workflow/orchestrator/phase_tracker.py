"""
Phase Tracker

Helper for reporting device share progress, one event per phase transition.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from datetime import timezone
from typing import AsyncIterator
from typing import Callable
from typing import Optional

from loguru import logger
from pydantic import BaseModel
from pydantic import Field

from fleetshare.workflow.enums import Phase
from fleetshare.workflow.enums import PhaseOutcome
from fleetshare.workflow.exceptions import DeviceShareError


class PhaseEvent(BaseModel):
    """One phase transition of a share or unshare run."""

    device_id: str
    serial_number: Optional[str] = None
    phase: Phase
    outcome: PhaseOutcome
    detail: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


PhaseHook = Callable[[PhaseEvent], None]


class PhaseTracker:
    """
    Helper for reporting workflow phases.

    Every event is logged with structured fields and, when a hook is given,
    handed to the hook as well.
    """

    def __init__(self, device_id: str, on_event: Optional[PhaseHook] = None):
        """
        Initialize phase tracker.

        Args:
            device_id: Source device id being shared or unshared
            on_event: Optional callback receiving every PhaseEvent
        """
        self.device_id = device_id
        self.serial_number: Optional[str] = None
        self.on_event = on_event

    def emit(self, phase: Phase, outcome: PhaseOutcome, detail: str = "") -> PhaseEvent:
        """
        Record a phase transition.

        Args:
            phase: Workflow phase
            outcome: What happened in the phase
            detail: Human-readable detail
        """
        event = PhaseEvent(
            device_id=self.device_id,
            serial_number=self.serial_number,
            phase=phase,
            outcome=outcome,
            detail=detail,
        )

        # bind() keeps store error text containing braces out of str.format
        bound = logger.bind(
            device_id=self.device_id,
            serial_number=self.serial_number,
            phase=phase.value,
            outcome=outcome.value,
        )
        log = bound.error if outcome == PhaseOutcome.FAILED else bound.info
        log(f"[{self.device_id}] {phase.value}: {outcome.value}" + (f" - {detail}" if detail else ""))

        if self.on_event is not None:
            self.on_event(event)
        return event

    def completed(self, phase: Phase, detail: str = "") -> PhaseEvent:
        return self.emit(phase, PhaseOutcome.COMPLETED, detail)

    def skipped(self, phase: Phase, detail: str = "") -> PhaseEvent:
        return self.emit(phase, PhaseOutcome.SKIPPED, detail)

    def reused(self, phase: Phase, detail: str = "") -> PhaseEvent:
        return self.emit(phase, PhaseOutcome.REUSED, detail)

    @asynccontextmanager
    async def phase(self, phase: Phase) -> AsyncIterator[None]:
        """
        Report a FAILED event for any error escaping the block, then re-raise it.

        Workflow errors raised without a phase are tagged with this one.
        """
        try:
            yield
        except Exception as err:
            if isinstance(err, DeviceShareError) and err.phase is None:
                err.phase = phase.value
            self.emit(phase, PhaseOutcome.FAILED, str(err))
            raise
