"""Unit tests for store/session_manager.py.

Sessions are cached in memory per (server, database) and opened lazily.
"""

import asyncio
from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest

from fleetshare.store.auth import StoreSession
from fleetshare.store.session_manager import SessionManager


def _session(database: str, session_id: str = "session-1") -> StoreSession:
    return StoreSession(database=database, user_name="svc", session_id=session_id, server="my.geotab.com")


class TestSessionManagerInit:
    def test_init_creates_empty_cache(self):
        manager = SessionManager(username="svc", password="secret")

        assert manager.username == "svc"

    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    def test_init_is_lazy(self, mock_authenticate):
        SessionManager(username="svc", password="secret")

        mock_authenticate.assert_not_awaited()


class TestSessionManagerGetSession:
    @pytest.mark.asyncio
    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    async def test_first_call_authenticates(self, mock_authenticate):
        mock_authenticate.return_value = _session("fleet_a")
        manager = SessionManager(username="svc", password="secret")
        http = MagicMock()

        session = await manager.get_session(http, "my.geotab.com", "fleet_a")

        assert session.session_id == "session-1"
        mock_authenticate.assert_awaited_once_with(http, "my.geotab.com", "fleet_a", "svc", "secret")

    @pytest.mark.asyncio
    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    async def test_cached_per_database(self, mock_authenticate):
        mock_authenticate.side_effect = lambda http, server, database, *args: _session(database)
        manager = SessionManager(username="svc", password="secret")

        await manager.get_session(MagicMock(), "my.geotab.com", "fleet_a")
        await manager.get_session(MagicMock(), "my.geotab.com", "fleet_a")
        session_b = await manager.get_session(MagicMock(), "my.geotab.com", "fleet_b")
        await manager.get_session(MagicMock(), "my.geotab.com", "fleet_b")

        assert mock_authenticate.await_count == 2
        assert session_b.database == "fleet_b"

    @pytest.mark.asyncio
    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    async def test_concurrent_first_calls_authenticate_once(self, mock_authenticate):
        async def slow_authenticate(http, server, database, *args):
            await asyncio.sleep(0)
            return _session(database)

        mock_authenticate.side_effect = slow_authenticate
        manager = SessionManager(username="svc", password="secret")

        sessions = await asyncio.gather(*(manager.get_session(MagicMock(), "my.geotab.com", "fleet_a") for _ in range(5)))

        assert mock_authenticate.await_count == 1
        assert len({session.session_id for session in sessions}) == 1

    @pytest.mark.asyncio
    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    async def test_invalidate_forces_new_session(self, mock_authenticate):
        mock_authenticate.side_effect = [_session("fleet_a", "session-1"), _session("fleet_a", "session-2")]
        manager = SessionManager(username="svc", password="secret")

        await manager.get_session(MagicMock(), "my.geotab.com", "fleet_a")
        manager.invalidate("my.geotab.com", "fleet_a")
        session = await manager.get_session(MagicMock(), "my.geotab.com", "fleet_a")

        assert session.session_id == "session-2"

    @pytest.mark.asyncio
    @patch("fleetshare.store.session_manager.authenticate", new_callable=AsyncMock)
    async def test_invalidate_unknown_is_noop(self, mock_authenticate):
        mock_authenticate.return_value = _session("fleet_a")
        manager = SessionManager(username="svc", password="secret")

        manager.invalidate("my.geotab.com", "fleet_a")
        await manager.get_session(MagicMock(), "my.geotab.com", "fleet_a")

        assert mock_authenticate.await_count == 1
