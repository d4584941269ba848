"""Centralized session management with in-memory caching for store authentication.

Sessions are cached per (server, database) pair and live only in process memory.
A session is opened on first use and reused until the store reports it invalid.
"""

import asyncio
from typing import Dict
from typing import Tuple

import httpx
from loguru import logger

from fleetshare.store.auth import StoreSession
from fleetshare.store.auth import authenticate

_SessionKey = Tuple[str, str]


class SessionManager:
    """
    Coroutine-safe session cache for one service account.

    Attributes
    ----------
    username : str
        Service account user name
    _sessions : Dict[Tuple[str, str], StoreSession]
        Cached sessions keyed by (server, database)
    _locks : Dict[Tuple[str, str], asyncio.Lock]
        One lock per key so concurrent first calls authenticate once
    """

    def __init__(self, username: str, password: str):
        """
        Initialize the session manager with credentials.

        Parameters
        ----------
        username : str
            Service account user name
        password : str
            Service account password

        Note
        ----
        No session is opened here. Authentication happens on the first
        get_session() call for each database.
        """
        self.username = username
        self._password = password
        self._sessions: Dict[_SessionKey, StoreSession] = {}
        self._locks: Dict[_SessionKey, asyncio.Lock] = {}

        logger.info("SessionManager initialized (in-memory caching, no external storage)")

    async def get_session(self, http: httpx.AsyncClient, server: str, database: str) -> StoreSession:
        """
        Get a session for a database, authenticating if none is cached.

        Parameters
        ----------
        http : httpx.AsyncClient
            HTTP client used for Authenticate
        server : str
            Server the caller addresses
        database : str
            Database name

        Returns
        -------
        StoreSession
            Cached or freshly opened session
        """
        key = (server, database)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            session = self._sessions.get(key)
            if session is not None:
                logger.debug("Reusing cached session", database=database, server=session.server)
                return session

            logger.info("Opening new store session", database=database, server=server)
            session = await authenticate(http, server, database, self.username, self._password)
            self._sessions[key] = session
            return session

    def invalidate(self, server: str, database: str) -> None:
        """
        Drop the cached session for a database.

        The next get_session() call authenticates again.
        """
        if self._sessions.pop((server, database), None) is not None:
            logger.info("Session invalidated", database=database, server=server)
