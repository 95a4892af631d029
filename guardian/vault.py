"""Minimal async client for the Vault HTTP API.

Only the handful of endpoints the broker's collaborators need are exercised:
AppRole login, Okta login and user mapping, token lookup and KV v2.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx

from .errors import UpstreamError

logger = logging.getLogger(__name__)

TokenSource = Callable[[], Optional[str]]


class VaultError(UpstreamError):
    """Vault answered with a non-success status."""

    def __init__(self, status: int, errors: list[str]) -> None:
        detail = "; ".join(errors) if errors else f"HTTP {status}"
        super().__init__("vault", detail, status=status)
        self.errors = errors


def segment(value: str) -> str:
    """Quote ``value`` for use as a single path segment."""
    return quote(value, safe="@")


class VaultClient:
    """Thin wrapper around :class:`httpx.AsyncClient`.

    The client token is pulled from ``token_source`` for every request, so
    a token installed after construction is used immediately.
    """

    def __init__(
        self,
        address: str,
        token_source: Optional[TokenSource] = None,
        namespace: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.address = address.rstrip("/")
        self._token_source = token_source
        headers = {"X-Vault-Namespace": namespace} if namespace else {}
        self._client = httpx.AsyncClient(
            base_url=f"{self.address}/v1/", headers=headers, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
        authenticated: bool = True,
        token: Optional[str] = None,
    ) -> tuple[int, dict[str, Any]]:
        """Send a request and return ``(status, body)`` for 2xx and 404 answers.

        Args:
            authenticated: attach the token from ``token_source``.
            token: explicit token, overrides ``token_source``.
        """
        headers = {}
        client_token = token
        if client_token is None and authenticated and self._token_source is not None:
            client_token = self._token_source()
        if client_token:
            headers["X-Vault-Token"] = client_token

        try:
            response = await self._client.request(
                method, path.lstrip("/"), json=payload, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Vault request {method} {path} failed: {type(exc).__name__}")
            raise UpstreamError("vault", f"{method} {path} failed: {type(exc).__name__}") from exc

        body: dict[str, Any] = {}
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = {}
        if response.status_code == 404 or response.is_success:
            return response.status_code, body
        raise VaultError(response.status_code, list(body.get("errors") or []))

    async def read(self, path: str, **kwargs: Any) -> Optional[dict[str, Any]]:
        """GET ``path``; ``None`` when Vault reports 404."""
        status, body = await self.request("GET", path, **kwargs)
        if status == 404:
            return None
        return body

    async def write(
        self, path: str, payload: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        status, body = await self.request("POST", path, payload, **kwargs)
        if status == 404:
            raise VaultError(404, list(body.get("errors") or []))
        return body


__all__ = ["VaultClient", "VaultError", "TokenSource", "segment"]
