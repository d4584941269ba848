"""FastAPI dependencies for accessing app state."""

from fastapi import Request

from fleetshare.settings import Settings
from fleetshare.store.session_manager import SessionManager


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_session_manager(request: Request) -> SessionManager:
    """
    Get session manager from request state.

    The session manager caches store sessions across requests.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    SessionManager
        Session manager instance with cached sessions
    """
    return request.app.state.session_manager
