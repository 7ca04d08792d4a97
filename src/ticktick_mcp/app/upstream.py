"""Async client for the TickTick Open API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import UpstreamError
from .settings import Settings

logger = logging.getLogger(__name__)


class TickTickClient:
    """Issue authenticated JSON requests against the TickTick Open API.

    Every call opens a short-lived ``httpx.AsyncClient``. There is no retry:
    a non-2xx status or a transport failure raises ``UpstreamError`` at once.
    """

    def __init__(
        self,
        *,
        access_token: str,
        base_url: str,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        # Tests inject httpx.MockTransport here.
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> TickTickClient:
        return cls(
            access_token=settings.access_token,
            base_url=settings.api_base_url,
            timeout_s=settings.request_timeout_s,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.access_token.strip())

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (``None`` when empty)."""
        if not self.configured:
            raise UpstreamError("TICKTICK_ACCESS_TOKEN is not configured", path=path)

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self._transport
            ) as client:
                response = await client.request(
                    method.upper(),
                    url,
                    headers=self._headers(),
                    json=body,
                    params=params,
                )
        except httpx.HTTPError as exc:
            logger.warning("upstream_request event=network_error method=%s path=%s", method, path)
            raise UpstreamError(f"API request failed: {exc}", path=path) from exc

        if not response.is_success:
            logger.warning(
                "upstream_request event=http_error method=%s path=%s status=%s",
                method,
                path,
                response.status_code,
            )
            raise UpstreamError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                path=path,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"API returned invalid JSON for {path}",
                path=path,
                status_code=response.status_code,
            ) from exc
