"""Outbound HTTP client adapter."""

import json
from dataclasses import dataclass
from typing import Protocol

import httpx

from calorie_planner.domain.errors import UpstreamError


@dataclass(frozen=True)
class HttpResult:
    """Status, raw text and parsed JSON of a provider response."""

    status_code: int
    text: str
    json: object | None

    @property
    def ok(self) -> bool:
        """Return true for 2xx responses."""
        return 200 <= self.status_code < 300  # noqa: PLR2004


class HttpClient(Protocol):
    """Interface for issuing provider requests."""

    async def request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        json_body: object | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResult:
        """Send a request and return the response without raising on status."""


@dataclass
class HttpxHttpClient(HttpClient):
    """HTTPX-backed provider client."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxHttpClient":
        """Create a client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        json_body: object | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResult:
        """Send a request; transport failures become UpstreamError."""
        try:
            response = await self.http_client.request(
                method,
                url,
                params=params,
                headers=headers,
                data=data,
                json=json_body,
                auth=auth,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Request to {httpx.URL(url).host} failed: {exc}"
            ) from exc
        return HttpResult(
            status_code=response.status_code,
            text=response.text,
            json=_parse_json(response.text),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _parse_json(text: str) -> object | None:
    """Parse a response body, returning None when it is not JSON."""
    try:
        return json.loads(text)
    except ValueError:
        return None
