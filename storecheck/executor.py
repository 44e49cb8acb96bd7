"""
Request Executor — sends one HTTP request and hands back the whole response.

Every status code is a normal outcome here; deciding whether a 404 is good
news belongs to the verifier.  Only a call that cannot complete at all
(connection refused, broken read, undecodable body) is an error, raised as ``TransportFailure``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from storecheck.errors import TransportFailure
from storecheck.models import ApiResponse, HttpMethod, RequestDescriptor

logger = logging.getLogger(__name__)


def _parse_body(resp: httpx.Response) -> Any:
    """Decode a JSON payload; empty or non-JSON bodies give ``None``."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        logger.debug("Non-JSON body (%s), keeping raw text", resp.headers.get("content-type", "?"))
        return None


class RequestExecutor:
    """
    Thin synchronous wrapper around ``httpx.Client``.

    Args:
        base_url: Root of the API under test, e.g. ``http://127.0.0.1:8000``
        timeout:  Seconds per request; ``None`` waits for the server indefinitely
        client:   Pre-built client to use instead (e.g. FastAPI's TestClient).
                  It is not closed by ``close()``.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        if client is None:
            self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @property
    def base_url(self) -> str:
        return str(self._client.base_url).rstrip("/")

    def execute(
        self,
        method: HttpMethod | str,
        path: str,
        body: Any = None,
        auth_token: str | None = None,
    ) -> ApiResponse:
        """Send ``method path`` and return the response, whatever its status."""
        return self.send(RequestDescriptor(method=method, path=path, body=body, auth_token=auth_token))

    def send(self, request: RequestDescriptor) -> ApiResponse:
        method, path = request.method, request.path
        headers: dict[str, str] = {"Accept": "application/json"}
        if request.auth_token:
            headers["Authorization"] = f"Bearer {request.auth_token}"

        kwargs: dict[str, Any] = {"headers": headers}
        if request.body is not None:
            if method.carries_body:
                kwargs["json"] = request.body
            else:
                logger.debug("Dropping body on %s %s", method.value, path)

        t0 = time.perf_counter()
        try:
            resp = self._client.request(method.value, path, **kwargs)
        except httpx.RequestError as exc:
            # Connection, timeout, redirect and body-decoding errors alike
            logger.error("%s %s could not complete: %s", method.value, path, exc)
            raise TransportFailure(method.value, f"{self.base_url}{path}", exc) from exc
        lat = (time.perf_counter() - t0) * 1000

        logger.debug(
            "%s %s%s -> %d (%.1fms)",
            method.value, path, " [auth]" if request.auth_token else "", resp.status_code, lat,
        )
        return ApiResponse(
            method=method,
            path=path,
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=_parse_body(resp),
            text=resp.text,
            latency_ms=lat,
        )

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RequestExecutor":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
