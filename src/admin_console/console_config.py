# This file defines runtime configuration for the admin console collections.
# It exists so API location, paging defaults, debounce timing, and cache policy are tuned through environment variables.
# Keeping these values centralized avoids hard-coded behavior scattered across controllers.
# The frozen dataclass also makes per-test configuration explicit and easy to build.

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class ConsoleConfig:
    api_base_url: str
    request_timeout_seconds: float
    default_page_size: int
    max_page_size: int
    search_debounce_ms: int
    list_cache_ttl_seconds: int
    export_dir: Path

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    def clamp_page_size(self, requested_page_size: int | None) -> int:
        if requested_page_size is None:
            return self.default_page_size
        return max(1, min(int(requested_page_size), self.max_page_size))


def load_console_config(*, load_env: bool = True) -> ConsoleConfig:
    if load_env:
        load_dotenv()

    api_base_url = os.getenv("ADMIN_API_BASE_URL")
    if not api_base_url:
        api_host = os.getenv("ADMIN_API_HOST", "localhost")
        api_port = os.getenv("ADMIN_API_PORT", "8000")
        api_base_url = f"http://{api_host}:{api_port}"

    default_page_size = int(os.getenv("ADMIN_DEFAULT_PAGE_SIZE", "10"))
    max_page_size = int(os.getenv("ADMIN_MAX_PAGE_SIZE", "100"))
    if default_page_size < 1 or max_page_size < default_page_size:
        raise RuntimeError(
            "ADMIN_DEFAULT_PAGE_SIZE must be >= 1 and not larger than ADMIN_MAX_PAGE_SIZE"
        )

    return ConsoleConfig(
        api_base_url=api_base_url.rstrip("/"),
        request_timeout_seconds=float(os.getenv("ADMIN_REQUEST_TIMEOUT_SECONDS", "8")),
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        search_debounce_ms=int(os.getenv("ADMIN_SEARCH_DEBOUNCE_MS", "300")),
        list_cache_ttl_seconds=int(os.getenv("ADMIN_LIST_CACHE_TTL_SECONDS", "300")),
        export_dir=Path(os.getenv("ADMIN_EXPORT_DIR", "exports")),
    )
