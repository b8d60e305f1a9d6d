"""
Async JSON fetch client shared by the upstream API clients.

Every request carries the configured timeout. Nothing is retried: a
transport failure or a body that is not JSON raises `UpstreamError`, and a
non-2xx answer is returned with `ok=False` for the caller to surface.
"""

import json
import shlex
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from .errors import UpstreamError

logger = structlog.get_logger()


@dataclass
class FetchResult:
    """A parsed JSON response."""

    ok: bool
    status: int
    body: Any
    curl: str


def curl_command(method: str, url: str, body: Optional[str] = None) -> str:
    """Equivalent curl invocation for a request, for debugging by clients."""
    cmd = f"curl -i -X {method} {shlex.quote(url)}"
    if body is not None:
        cmd += f" -H 'Content-Type: application/json' -d {shlex.quote(body)}"
    return cmd


def dig(body: Any, *path: str) -> Any:
    """Nested lookup into a JSON body. None when any step is missing."""
    for key in path:
        if not isinstance(body, dict):
            return None
        body = body.get(key)
    return body


def require_field(body: Any, *path: str, what: str, status_code: int = 500) -> Any:
    """Nested lookup that fails with `UpstreamError` when the field is absent."""
    value = dig(body, *path)
    if value is None:
        raise UpstreamError(
            f"{what}: response has no {'.'.join(path)}",
            response=body,
            status_code=status_code,
        )
    return value


def require_int(body: Any, *path: str, what: str) -> int:
    value = require_field(body, *path, what=what)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise UpstreamError(f"{what}: {'.'.join(path)} is not an integer", response=body)


class JsonClient:
    """
    Async JSON-over-HTTP client.
    """

    def __init__(self, base_url: str, timeout: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> FetchResult:
        """Perform a request and parse the JSON body."""
        client = await self._get_client()
        content = json.dumps(body) if body is not None else None
        headers = {"Content-Type": "application/json"} if content is not None else None
        request = client.build_request(method, path, params=params, content=content, headers=headers)
        url = str(request.url)

        try:
            response = await client.send(request)
        except httpx.HTTPError as e:
            logger.error("Upstream fetch failed", method=method, url=url, error=str(e))
            raise UpstreamError(f"{method} {url} - error performing fetch: {e}")

        try:
            payload = response.json()
        except ValueError:
            logger.error("Upstream returned invalid JSON", method=method, url=url, status=response.status_code)
            raise UpstreamError(
                f"{method} {url} - error parsing JSON response {response.status_code}",
                status=response.status_code,
                response=response.text,
            )

        logger.debug("Upstream fetch", method=method, url=url, status=response.status_code)
        return FetchResult(
            ok=response.is_success,
            status=response.status_code,
            body=payload,
            curl=curl_command(method, url, content),
        )
