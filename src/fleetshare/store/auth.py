"""Authenticate against a store database.

NOTE: This module only opens sessions. Session caching is handled by the
SessionManager class in session_manager.py.
"""

from typing import Any
from typing import Dict

import httpx
from loguru import logger
from pydantic import BaseModel

from fleetshare.store.rpc import post_rpc
from fleetshare.workflow.enums import StoreMethod
from fleetshare.workflow.exceptions import RemoteRejected

# Authenticate answers with this path when the database lives on the requested server
THIS_SERVER = "ThisServer"


class StoreSession(BaseModel):
    """An authenticated session on one database."""

    database: str
    user_name: str
    session_id: str
    server: str

    def credentials(self) -> Dict[str, Any]:
        """Credentials object sent with every call."""
        return {"database": self.database, "userName": self.user_name, "sessionId": self.session_id}


async def authenticate(
    http: httpx.AsyncClient,
    server: str,
    database: str,
    username: str,
    password: str,
) -> StoreSession:
    """
    Open a session on a store database.

    Parameters
    ----------
    http : httpx.AsyncClient
        Shared HTTP client
    server : str
        Server to authenticate against
    database : str
        Database name
    username : str
        Service account user name
    password : str
        Service account password

    Returns
    -------
    StoreSession
        Session credentials and the server that actually hosts the database

    Raises
    ------
    RemoteRejected
        Bad credentials or a response without a session id
    RemoteUnavailable
        The server could not be reached
    """
    result = await post_rpc(
        http,
        server,
        StoreMethod.AUTHENTICATE.value,
        {"database": database, "userName": username, "password": password},
        database=database,
    )

    credentials = (result or {}).get("credentials") or {}
    session_id = credentials.get("sessionId")
    if not session_id:
        raise RemoteRejected(
            "Authenticate response did not include a session id",
            database=database,
            method=StoreMethod.AUTHENTICATE.value,
        )

    # The database may be hosted on another server; later calls must go there
    path = (result or {}).get("path") or THIS_SERVER
    host = server if path == THIS_SERVER else path

    logger.info("Authenticated against store database", database=database, server=host)
    return StoreSession(
        database=credentials.get("database") or database,
        user_name=credentials.get("userName") or username,
        session_id=session_id,
        server=host,
    )
