"""Credentialed JSON-RPC client bound to one store database."""

from typing import Any
from typing import Optional

import httpx
from loguru import logger

from fleetshare.store.rpc import INVALID_USER_ERROR
from fleetshare.store.rpc import post_rpc
from fleetshare.store.session_manager import SessionManager
from fleetshare.workflow.exceptions import RemoteRejected

DEFAULT_SERVER = "my.geotab.com"


class StoreClient:
    """
    Call the store API for one database.

    Every call carries the cached session credentials. When the store reports
    the session as invalid, the session is dropped and the call is sent once
    more with a fresh session; any other failure propagates unchanged.
    """

    def __init__(
        self,
        database: str,
        session_manager: SessionManager,
        server: str = DEFAULT_SERVER,
        http: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            database: Database name
            session_manager: Shared session cache
            server: Server to authenticate against
            http: Existing HTTP client; one is created (and owned) when omitted
            timeout: Per-request timeout in seconds for an owned HTTP client
        """
        self.database = database
        self.server = server
        self._sessions = session_manager
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def call(self, method: str, **params: Any) -> Any:
        """
        Send a credentialed JSON-RPC call.

        Args:
            method: Get, Add or Set
            **params: Method parameters (typeName, search, entity)

        Returns:
            The call's result
        """
        session = await self._sessions.get_session(self._http, self.server, self.database)
        logger.debug("Store call", method=method, database=self.database, type_name=params.get("typeName"))
        try:
            return await post_rpc(
                self._http,
                session.server,
                method,
                {**params, "credentials": session.credentials()},
                database=self.database,
            )
        except RemoteRejected as err:
            if err.error_name != INVALID_USER_ERROR:
                raise
            logger.info("Store session expired, re-authenticating", database=self.database)
            self._sessions.invalidate(self.server, self.database)

        session = await self._sessions.get_session(self._http, self.server, self.database)
        return await post_rpc(
            self._http,
            session.server,
            method,
            {**params, "credentials": session.credentials()},
            database=self.database,
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
