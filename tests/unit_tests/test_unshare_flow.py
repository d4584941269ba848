"""Unshare workflow tests against the in-memory two-database store."""

from typing import List

import pytest

from fleetshare.workflow.enums import Phase
from fleetshare.workflow.enums import PhaseOutcome
from fleetshare.workflow.exceptions import NotShareable
from fleetshare.workflow.exceptions import RemoteUnavailable
from fleetshare.workflow.exceptions import TerminationTimeout
from fleetshare.workflow.orchestrator import PhaseEvent
from fleetshare.workflow.orchestrator import share_device
from tests.fixtures.store_fixtures import make_device

TARGET_DEVICE = {"id": "tb1", "name": "Truck 7", "serialNumber": "SN123", "activeTo": "2050-01-01T00:00:00Z"}


def _outcomes(events: List[PhaseEvent]):
    return [(event.phase, event.outcome) for event in events]


class TestUnshareDevice:
    @pytest.mark.asyncio
    async def test_terminates_active_share_and_archives(
        self, federation, source, target, source_store, target_store, fast_policy
    ):
        """Only the Active share is terminated; the historical Terminated one is left alone."""
        federation.seed_share("SN123", "Terminated", "admin-0", mirror=False)
        federation.seed_share("SN123", "Active", "admin-1")
        target_store.add_device(TARGET_DEVICE)
        events: List[PhaseEvent] = []

        result = await share_device(source, target, "b1", False, policy=fast_policy, on_event=events.append)

        assert result.success is True
        assert result.target_device.id == "tb1"
        assert result.target_device.active_to != "2050-01-01T00:00:00Z"
        assert target_store.devices["tb1"]["activeTo"] == result.target_device.active_to

        terminations = target_store.calls_to("Set", "DeviceShare")
        assert len(terminations) == 1
        assert terminations[0]["entity"]["shareStatus"] == "RequestTerminated"
        assert terminations[0]["entity"]["myAdminId"] == "admin-1"
        assert source_store.calls_to("Set", "DeviceShare") == []
        assert source_store.share_by_admin("admin-1")["shareStatus"] == "Terminated"

        assert _outcomes(events) == [
            (Phase.ELIGIBILITY, PhaseOutcome.COMPLETED),
            (Phase.EXISTING_SHARE, PhaseOutcome.COMPLETED),
            (Phase.TERMINATE, PhaseOutcome.COMPLETED),
            (Phase.ARCHIVE, PhaseOutcome.COMPLETED),
        ]

    @pytest.mark.asyncio
    async def test_cancels_pending_share(self, federation, source, target, source_store, fast_policy):
        federation.seed_share("SN123", "Pending", "admin-1", mirror=False)

        await share_device(source, target, "b1", False, policy=fast_policy)

        cancels = source_store.calls_to("Set", "DeviceShare")
        assert len(cancels) == 1
        assert cancels[0]["entity"]["shareStatus"] == "RequestCancelled"

    @pytest.mark.asyncio
    async def test_terminates_from_source_without_target_leg(
        self, federation, source, target, source_store, target_store, fast_policy
    ):
        federation.seed_share("SN123", "Active", "admin-1", mirror=False)

        await share_device(source, target, "b1", False, policy=fast_policy)

        assert source_store.calls_to("Set", "DeviceShare")[0]["entity"]["shareStatus"] == "RequestTerminated"
        assert target_store.calls_to("Set", "DeviceShare") == []
        assert source_store.share_by_admin("admin-1")["shareStatus"] == "Terminated"

    @pytest.mark.asyncio
    async def test_terminates_from_source_without_admin_id(self, source, target, source_store, target_store, fast_policy):
        source_store.add_share("s5", "SN123", None, "Active")

        await share_device(source, target, "b1", False, policy=fast_policy)

        assert source_store.shares["s5"]["shareStatus"] == "Terminated"
        # No admin id means no target lookup by admin id at all
        assert target_store.calls_to("Get", "DeviceShare") == []

    @pytest.mark.asyncio
    async def test_no_target_device_skips_archive(self, federation, source, target, target_store, fast_policy):
        federation.seed_share("SN123", "Active", "admin-1")
        events: List[PhaseEvent] = []

        result = await share_device(source, target, "b1", False, policy=fast_policy, on_event=events.append)

        assert result.success is True
        assert result.target_device is None
        assert target_store.calls_to("Set", "Device") == []
        assert _outcomes(events)[-1] == (Phase.ARCHIVE, PhaseOutcome.SKIPPED)

    @pytest.mark.asyncio
    async def test_nothing_shared_still_archives(self, source, target, target_store, fast_policy):
        target_store.add_device(TARGET_DEVICE)

        result = await share_device(source, target, "b1", False, policy=fast_policy)

        assert result.target_device.id == "tb1"
        assert len(target_store.mutations()) == 1

    @pytest.mark.asyncio
    async def test_termination_timeout(self, federation, source, target, target_store, fast_policy):
        federation.termination_enabled = False
        federation.seed_share("SN123", "Active", "admin-1")
        target_store.add_device(TARGET_DEVICE)

        with pytest.raises(TerminationTimeout) as exc_info:
            await share_device(source, target, "b1", False, policy=fast_policy)

        assert exc_info.value.phase == "terminate"
        assert exc_info.value.attempts == 12
        # The target device is only archived after every share is torn down
        assert target_store.devices["tb1"]["activeTo"] == "2050-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_failed_share_lookup_is_not_a_termination(self, source, target, source_store, fast_policy):
        source_store.fail("Get", "DeviceShare", RemoteUnavailable("connection reset", database="fleet_a"))
        events: List[PhaseEvent] = []

        with pytest.raises(RemoteUnavailable) as exc_info:
            await share_device(source, target, "b1", False, policy=fast_policy, on_event=events.append)

        assert exc_info.value.phase == "existing_share"
        assert _outcomes(events)[-1] == (Phase.EXISTING_SHARE, PhaseOutcome.FAILED)
        assert Phase.TERMINATE not in [event.phase for event in events]

    @pytest.mark.asyncio
    async def test_unshare_checks_eligibility(self, source, target, source_store, target_store, fast_policy):
        source_store.add_device(make_device(device_id="b2", serial_number="SN456", billing=False))

        with pytest.raises(NotShareable):
            await share_device(source, target, "b2", False, policy=fast_policy)

        assert source_store.mutations() == []
        assert target_store.calls == []
