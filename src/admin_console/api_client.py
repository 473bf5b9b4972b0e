# This file implements the HTTP transport the resource gateways are built on.
# It exists so request details (base URL, bearer header, timeout, JSON decoding) live in one place.
# Transport failures and timeouts are converted into one network error type.
# Status handling is left to the gateway, which knows what each endpoint's envelope should look like.

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests

from src.admin_console.errors import NetworkError

LOGGER = logging.getLogger("admin_console.api_client")


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Any | None
    content: bytes
    content_type: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_json(self) -> bool:
        return self.body is not None


class AdminApiClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 8,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> ApiResponse:
        url = f"{self.base_url}{path}"
        params = {key: value for key, value in (query or {}).items() if value is not None}
        request_headers = {"Accept": "application/json, text/csv, application/octet-stream"}
        request_headers.update(headers or {})
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds

        try:
            response = self.session.request(
                method,
                url,
                params=params or None,
                json=body,
                headers=request_headers,
                timeout=timeout,
            )
        except requests.Timeout as exc:
            LOGGER.warning("request timed out method=%s url=%s timeout=%s", method, url, timeout)
            raise NetworkError(f"API request timed out after {timeout}s for {url}") from exc
        except requests.RequestException as exc:
            LOGGER.warning("request failed method=%s url=%s error=%s", method, url, exc)
            raise NetworkError(f"API request failed for {url}: {exc}") from exc

        content_type = str(response.headers.get("content-type", ""))
        content = response.content or b""
        LOGGER.debug(
            "request completed method=%s url=%s status=%s bytes=%s",
            method,
            url,
            response.status_code,
            len(content),
        )
        return ApiResponse(
            status=int(response.status_code),
            body=_decode_json(response, content_type),
            content=content,
            content_type=content_type,
        )


def _decode_json(response: Any, content_type: str) -> Any | None:
    if content_type and "json" not in content_type.lower():
        return None
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
