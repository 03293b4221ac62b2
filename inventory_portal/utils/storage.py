"""
Key-value stores backing the portal's client-side state.

Two lifetimes are used:
  * durable    : survives browser restarts (bearer token, identity snapshot);
                  stored in long-lived signed cookies via CookieStore
  * session    : cleared when the browser session ends (tenant config cache);
                  stored in Starlette's signed session cookie via MappingStore

Every write replaces the whole value for a key.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Protocol

from itsdangerous import BadSignature, URLSafeSerializer

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

COOKIE_SALT = "inventory-portal.durable"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MappingStore:
    """Store backed by any mutable mapping (a dict in tests, ``request.session`` in the app)."""

    def __init__(self, mapping: MutableMapping[str, Any] | None = None):
        self._mapping = mapping if mapping is not None else {}

    def get(self, key: str) -> str | None:
        value = self._mapping.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._mapping[key] = value

    def delete(self, key: str) -> None:
        self._mapping.pop(key, None)

    def __len__(self) -> int:
        return len(self._mapping)


class CookieStore:
    """
    Durable store backed by signed response cookies.

    Values are signed with ``itsdangerous`` under the portal's secret key, so a
    hand-edited cookie reads back as absent. Reads come from the incoming
    request's cookies (overlaid with writes made during this request); writes
    are queued and applied to the outgoing response by ``flush``.
    """

    def __init__(self, request: Request, secret_key: str, max_age: int, secure: bool = False):
        self._cookies = dict(request.cookies)
        self._pending: dict[str, str | None] = {}
        self._serializer = URLSafeSerializer(secret_key, salt=COOKIE_SALT)
        self.max_age = max_age
        self.secure = secure

    def get(self, key: str) -> str | None:
        if key in self._pending:
            return self._pending[key]
        raw = self._cookies.get(key)
        if raw is None:
            return None
        try:
            value = self._serializer.loads(raw)
        except BadSignature:
            logger.warning("Ignoring cookie '%s' with an invalid signature", key)
            return None
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._pending[key] = value

    def delete(self, key: str) -> None:
        self._pending[key] = None

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    def flush(self, response: Response) -> None:
        """Write queued changes onto the response."""
        for key, value in self._pending.items():
            if value is None:
                if key in self._cookies:
                    response.delete_cookie(key)
                continue
            response.set_cookie(
                key=key,
                value=self._serializer.dumps(value),
                max_age=self.max_age,
                httponly=True,
                secure=self.secure,
                samesite="lax",
            )
        logger.debug("Flushed %d cookie change(s)", len(self._pending))
        self._pending.clear()
