"""Low-level JSON-RPC call against a store server."""

from typing import Any
from typing import Dict
from typing import Optional

import httpx
from loguru import logger

from fleetshare.workflow.exceptions import RemoteRejected
from fleetshare.workflow.exceptions import RemoteUnavailable

# Store error name for an expired or revoked session
INVALID_USER_ERROR = "InvalidUserException"


def api_url(server: str) -> str:
    """Build the JSON-RPC endpoint for a store server."""
    return f"https://{server}/apiv1"


def _error_name(error: Dict[str, Any]) -> Optional[str]:
    """Most specific error name from a JSON-RPC error object."""
    nested = error.get("errors") or []
    if nested and isinstance(nested[0], dict) and nested[0].get("name"):
        return nested[0]["name"]
    data = error.get("data")
    if isinstance(data, dict) and data.get("type"):
        return data["type"]
    return error.get("name")


async def post_rpc(
    http: httpx.AsyncClient,
    server: str,
    method: str,
    params: Dict[str, Any],
    database: Optional[str] = None,
) -> Any:
    """
    Send one JSON-RPC request and return its ``result``.

    Parameters
    ----------
    http : httpx.AsyncClient
        Shared HTTP client
    server : str
        Store host name, e.g. ``my.geotab.com``
    method : str
        JSON-RPC method (Authenticate, Get, Add, Set)
    params : Dict[str, Any]
        Method parameters, including credentials where required
    database : str, optional
        Database name, only used for error context

    Returns
    -------
    Any
        The ``result`` member of the response

    Raises
    ------
    RemoteUnavailable
        Network failure, timeout, 5xx or an unreadable response
    RemoteRejected
        4xx or a JSON-RPC error object
    """
    try:
        response = await http.post(api_url(server), json={"method": method, "params": params})
    except httpx.TimeoutException as e:
        raise RemoteUnavailable(
            f"{method} to {server} timed out", database=database, method=method, error_name=type(e).__name__
        ) from e
    except httpx.RequestError as e:
        raise RemoteUnavailable(
            f"Could not reach {server}: {e}", database=database, method=method, error_name=type(e).__name__
        ) from e

    if response.status_code >= 500:
        raise RemoteUnavailable(
            f"{method} to {server} failed with status {response.status_code}",
            database=database,
            method=method,
            error_name=f"HTTP{response.status_code}",
        )
    if response.status_code >= 400:
        raise RemoteRejected(
            f"{method} to {server} rejected with status {response.status_code}: {response.text}",
            database=database,
            method=method,
            error_name=f"HTTP{response.status_code}",
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise RemoteUnavailable(
            f"{method} to {server} returned a non-JSON body", database=database, method=method
        ) from e

    error = payload.get("error") if isinstance(payload, dict) else None
    if error:
        name = _error_name(error)
        logger.debug("Store returned an error", method=method, database=database, error_name=name)
        raise RemoteRejected(
            error.get("message") or f"{method} rejected by {server}",
            database=database,
            method=method,
            error_name=name,
        )

    return payload.get("result") if isinstance(payload, dict) else None
