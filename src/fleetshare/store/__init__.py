"""
Store Transport Module

JSON-RPC client for the fleet database API:
- post_rpc: single request/response with error mapping
- authenticate / SessionManager: cached per-database sessions
- StoreClient: credentialed Get/Add/Set calls against one database
"""

from fleetshare.store.client import StoreClient
from fleetshare.store.session_manager import SessionManager
from fleetshare.store.auth import StoreSession

__all__ = [
    "StoreClient",
    "SessionManager",
    "StoreSession",
]
