"""
Network module for build scripts: download, http_get, http_post.

Uses one httpx.Client per run (closed by HostContext.release). Requests are
blocking with the configured timeout.
"""

from collections.abc import Mapping
from typing import Any

import httpx

from ..context import HostContext
from .base import CapabilityModule, plugin_error

DEFAULT_HTTP_TIMEOUT = 30.0


def _check_url(url: Any) -> str:
    if not isinstance(url, str):
        raise plugin_error(TypeError(f"got {type(url).__name__}"), "URL must be a string")
    return url


def _check_headers(headers: Any) -> dict[str, str] | None:
    if headers is None:
        return None
    if not isinstance(headers, Mapping):
        raise plugin_error(TypeError(f"got {type(headers).__name__}"), "Headers must be a dict")
    return {str(k): str(v) for k, v in headers.items()}


def _response_dict(resp: httpx.Response) -> dict[str, Any]:
    return {
        "status": resp.status_code,
        "body": resp.text,
        "headers": dict(resp.headers),
    }


class _HttpClient:
    """Lazily created httpx.Client shared by every net operation of one run."""

    __slots__ = ("_client", "_timeout", "_transport")

    def __init__(self, *, timeout: float, transport: httpx.BaseTransport | None = None) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def get(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def make_net_module(
    *,
    context: HostContext,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> CapabilityModule:
    """Build the `net` module. ``transport`` is for tests (httpx.MockTransport)."""
    http = _HttpClient(timeout=timeout, transport=transport)
    context.add_cleanup(http.close)

    def download(url: str, path: str) -> bool:
        url = _check_url(url)
        try:
            resp = http.get().get(url)
        except httpx.HTTPError as e:
            raise plugin_error(e, f"Error downloading from {url}") from e
        if not resp.is_success:
            raise plugin_error(
                RuntimeError(f"Status {resp.status_code}"), f"Error downloading {url}"
            )
        try:
            context.resolve_path(path).write_bytes(resp.content)
        except OSError as e:
            raise plugin_error(e, f"Error writing file {path}") from e
        return True

    def http_get(url: str, headers: dict[str, str] | None = None) -> dict[str, Any]:
        url = _check_url(url)
        try:
            resp = http.get().get(url, headers=_check_headers(headers))
        except httpx.HTTPError as e:
            raise plugin_error(e, f"Error in GET request to {url}") from e
        return _response_dict(resp)

    def http_post(url: str, body: str, headers: dict[str, str] | None = None) -> dict[str, Any]:
        url = _check_url(url)
        if not isinstance(body, str):
            raise plugin_error(TypeError(f"got {type(body).__name__}"), "Body must be a string")
        try:
            resp = http.get().post(url, content=body.encode("utf-8"), headers=_check_headers(headers))
        except httpx.HTTPError as e:
            raise plugin_error(e, f"Error in POST request to {url}") from e
        return _response_dict(resp)

    return CapabilityModule(
        "net", {"download": download, "http_get": http_get, "http_post": http_post}
    )
