"""OAuth client-credentials token management for FatSecret."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from calorie_planner.adapters.http_client import HttpClient
from calorie_planner.domain.errors import AuthError, UpstreamError

_logger = logging.getLogger(__name__)

_EXPIRY_MARGIN = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AccessToken:
    """A bearer token and the moment it stops being valid."""

    token: str
    expires_at: datetime


@dataclass
class TokenState:
    """Process-wide slot holding the current access token."""

    current: AccessToken | None = None


@dataclass
class TokenManager:
    """Obtains and caches the provider bearer token."""

    http_client: HttpClient
    client_id: str
    client_secret: str
    token_url: str
    state: TokenState = field(default_factory=TokenState)
    scope: str = "basic"
    clock: Callable[[], datetime] = _utcnow

    async def get_token(self) -> str:
        """Return a cached token, exchanging credentials when it is near expiry."""
        now = self.clock()
        current = self.state.current
        if current is not None and now < current.expires_at - _EXPIRY_MARGIN:
            return current.token

        try:
            result = await self.http_client.request(
                "POST",
                self.token_url,
                data={"grant_type": "client_credentials", "scope": self.scope},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                auth=(self.client_id, self.client_secret),
            )
        except UpstreamError as exc:
            raise AuthError(f"FatSecret token error: {exc}") from exc
        if not result.ok:
            raise AuthError(f"FatSecret token error: {result.text}")
        payload = result.json
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthError(f"FatSecret token error: {result.text}")

        try:
            expires_in = float(payload.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0.0
        self.state.current = AccessToken(
            token=str(payload["access_token"]),
            expires_at=now + timedelta(seconds=expires_in),
        )
        _logger.info("Refreshed FatSecret token, expires in %ss", expires_in)
        return self.state.current.token
