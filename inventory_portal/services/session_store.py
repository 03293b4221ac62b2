"""
Session Store

Owns the bearer credential and the identity shown in the UI. The token and a
JSON identity snapshot are kept in a durable key-value store; the in-memory
Session is rebuilt from them on every restore.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeVar

from jose import JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inventory_portal.constants.roles import normalize_role
from inventory_portal.exceptions import ApiError, AuthenticationError, ValidationError
from inventory_portal.schemas import AuthResponse, IdentitySnapshot, LoginRequest, SignupRequest
from inventory_portal.services.api_client import ApiClient
from inventory_portal.utils.storage import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
DEFAULT_LOGIN_FAILURE = "Invalid username or password."

ModelT = TypeVar("ModelT", bound=BaseModel)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_token_expiry(token: str) -> datetime:
    """
    Read the ``exp`` claim without verifying the signature.

    The portal never holds the backend's signing key; the backend stays the
    authority on validity and answers 401 for anything it rejects.

    Raises:
        ValueError: token cannot be decoded or has no usable ``exp`` claim
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise ValueError(f"Malformed token: {e}") from e
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        raise ValueError("Token has no numeric 'exp' claim")
    return datetime.fromtimestamp(exp, tz=timezone.utc)


@dataclass(frozen=True)
class Session:
    raw_token: str
    subject: str
    email: str | None
    roles: tuple[str, ...]
    expiry: datetime
    token_type: str | None = None

    def is_valid(self, now: datetime) -> bool:
        return self.expiry > now


def _unique_roles(roles: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(roles))


def _build_request(model: type[ModelT], **fields: str) -> ModelT:
    """Validate a credential payload, reporting the first bad field as a form error."""
    try:
        return model(**fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"{field.capitalize()} is not valid", field=field) from e


class SessionStore:
    """
    Credential and identity lifecycle.

    Args:
        storage: Durable key-value store for the token and identity snapshot
        client: Backend client used for login/signup
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        storage: KeyValueStore,
        client: ApiClient | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.client = client
        self.clock = clock
        self._session: Session | None = None

    # ── lifecycle ──────────────────────────────────────────────────────────────

    def restore(self) -> Session | None:
        """
        Rebuild the session from durable storage without any network call.

        An expired or undecodable token, or a missing/malformed identity
        snapshot, purges storage and yields None.
        """
        token = self.storage.get(TOKEN_KEY)
        if not token:
            self._purge()
            return None

        try:
            expiry = decode_token_expiry(token)
        except ValueError as e:
            logger.warning("Discarding stored token: %s", e)
            self._purge()
            return None

        if expiry <= self.clock():
            logger.info("Stored token expired at %s; purging session", expiry.isoformat())
            self._purge()
            return None

        raw_user = self.storage.get(USER_KEY)
        try:
            snapshot = IdentitySnapshot.model_validate_json(raw_user or "")
        except PydanticValidationError:
            logger.warning("Stored identity snapshot is missing or malformed; purging session")
            self._purge()
            return None

        self._session = Session(
            raw_token=token,
            subject=snapshot.username,
            email=snapshot.email,
            roles=_unique_roles(snapshot.roles),
            expiry=expiry,
            token_type=snapshot.type,
        )
        return self._session

    async def login(self, username: str, password: str) -> Session:
        """
        Exchange credentials for a session.

        A response without a token is a failure even when the HTTP call
        succeeded; the backend's errorMessage is surfaced when present.
        """
        request = _build_request(LoginRequest, username=username, password=password)
        try:
            data = await self._client().post("/auth/login", json=request.model_dump(), authenticated=False)
            return self._establish(data)
        except (AuthenticationError, ApiError) as e:
            logger.warning("Login failed for '%s': %s", username, e.message)
            self._purge()
            if isinstance(e, AuthenticationError):
                raise
            raise AuthenticationError(e.message) from e

    async def signup(self, username: str, email: str, password: str) -> Session:
        request = _build_request(SignupRequest, username=username, email=email, password=password)
        try:
            data = await self._client().post("/auth/register", json=request.model_dump(), authenticated=False)
        except ApiError as e:
            logger.warning("Signup failed for '%s': %s", username, e.message)
            raise AuthenticationError(e.message) from e
        return self._establish(data)

    def logout(self) -> None:
        """Clear the credential and identity unconditionally."""
        if self._session is not None:
            logger.info("User '%s' logged out", self._session.subject)
        self._purge()

    def handle_unauthorized(self) -> None:
        """Purge hook for any backend call answered with 401."""
        logger.info("Session invalidated by backend")
        self._purge()

    # ── queries ────────────────────────────────────────────────────────────────

    def current(self) -> Session | None:
        """Return the active session; an expired one is purged, not just ignored."""
        if self._session is not None and not self._session.is_valid(self.clock()):
            logger.info("Session for '%s' expired; purging", self._session.subject)
            self._purge()
        return self._session

    @property
    def token(self) -> str | None:
        session = self.current()
        return session.raw_token if session else None

    def is_in_role(self, role: str) -> bool:
        session = self.current()
        if session is None:
            return False
        wanted = normalize_role(role)
        return any(normalize_role(r) == wanted for r in session.roles)

    # ── internals ──────────────────────────────────────────────────────────────

    def _client(self) -> ApiClient:
        if self.client is None:
            raise RuntimeError("SessionStore has no backend client configured")
        return self.client

    def _establish(self, data: object) -> Session:
        try:
            response = AuthResponse.model_validate(data or {})
        except PydanticValidationError:
            raise AuthenticationError("The server returned an unexpected response.")

        if not response.token:
            raise AuthenticationError(response.error_message or DEFAULT_LOGIN_FAILURE)
        if not response.username:
            raise AuthenticationError("The server response did not identify the user.")

        try:
            expiry = decode_token_expiry(response.token)
        except ValueError:
            raise AuthenticationError("The server returned an unreadable credential.")

        snapshot = IdentitySnapshot(
            type=response.type,
            username=response.username,
            email=response.email,
            roles=list(response.roles),
        )
        self.storage.set(TOKEN_KEY, response.token)
        self.storage.set(USER_KEY, snapshot.model_dump_json())
        self._session = Session(
            raw_token=response.token,
            subject=snapshot.username,
            email=snapshot.email,
            roles=_unique_roles(snapshot.roles),
            expiry=expiry,
            token_type=snapshot.type,
        )
        logger.info("Session established for '%s'", snapshot.username)
        return self._session

    def _purge(self) -> None:
        self.storage.delete(TOKEN_KEY)
        self.storage.delete(USER_KEY)
        self._session = None
