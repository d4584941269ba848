"""Unit tests for dependencies.py."""

from unittest.mock import MagicMock

from fleetshare.dependencies import get_session_manager
from fleetshare.dependencies import get_settings
from fleetshare.store.session_manager import SessionManager


class TestAppStateDependencies:
    def test_get_settings(self, app, mock_settings):
        request = MagicMock()
        request.app = app

        assert get_settings(request) is mock_settings

    def test_get_session_manager_is_shared(self, app, mock_settings):
        request = MagicMock()
        request.app = app

        session_manager = get_session_manager(request)

        assert isinstance(session_manager, SessionManager)
        assert session_manager.username == mock_settings.store_username
        assert get_session_manager(request) is session_manager
