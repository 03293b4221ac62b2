"""
Backend HTTP client.

Every call to the REST backend goes through ApiClient so the bearer header,
the timeout and the 401 purge are applied in one place.
"""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from inventory_portal.exceptions import ApiError, SessionExpiredError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "The server could not complete the request."


def extract_error_message(response: httpx.Response, default: str = GENERIC_ERROR_MESSAGE) -> str:
    """Pull a human-readable message out of a backend error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:200] or default
    if isinstance(body, dict):
        for key in ("message", "errorMessage", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class ApiClient:
    """
    Thin async wrapper over httpx for the portal backend.

    Args:
        base_url: Backend API root, e.g. "http://localhost:8080/api"
        token_provider: Returns the current bearer token, or None
        on_unauthorized: Called when an authenticated call answers 401
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests inject MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str | None] | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout
        self.transport = transport

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authenticated and self.token_provider is not None:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Raises:
            SessionExpiredError: authenticated call answered 401
            ApiError: any other non-2xx status or a transport failure
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    headers=self._headers(authenticated),
                )
        except httpx.TimeoutException:
            logger.error("Backend timed out: %s %s", method, path)
            raise ApiError("The server took too long to respond.")
        except httpx.RequestError as e:
            logger.error("Backend request failed: %s %s - %s", method, path, e)
            raise ApiError("Could not reach the server.")

        if response.status_code == 401 and authenticated:
            logger.warning("Backend rejected credential on %s %s; purging session", method, path)
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise SessionExpiredError()

        if response.is_error:
            message = extract_error_message(response)
            logger.warning("Backend error %d on %s %s: %s", response.status_code, method, path, message)
            raise ApiError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ApiError("The server returned an unreadable response.", status_code=response.status_code)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)
