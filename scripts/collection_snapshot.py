#!/usr/bin/env python3
"""
Fetch one page of an admin collection and print it as JSON.
It drives the same collection controller the console views use, so filters and paging behave identically.
Run it directly with `ADMIN_API_TOKEN` set; it exits non-zero when the load or export fails.
"""
# ruff: noqa: E402

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.admin_console.auth import StaticCredentialProvider
from src.admin_console.console_config import load_console_config
from src.admin_console.controller import CollectionController
from src.admin_console.export import DirectoryExportSink
from src.admin_console.resources import RESOURCE_SPECS, get_resource_spec
from src.common.logging import configure_logging
from src.common.settings import get_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print one page of an admin collection")
    parser.add_argument("resource", choices=sorted(RESOURCE_SPECS), help="Collection to load")
    parser.add_argument("--page", type=int, default=1, help="1-based page number")
    parser.add_argument("--limit", type=int, default=None, help="Page size (clamped to max)")
    parser.add_argument("--search", default=None, help="Free-text search filter")
    parser.add_argument("--status", default=None, help="Status filter")
    parser.add_argument(
        "--export",
        type=Path,
        default=None,
        help="Directory to write a CSV export of the filtered collection",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    config = load_console_config()
    controller = CollectionController.from_config(
        spec=get_resource_spec(args.resource),
        config=config,
        auth=StaticCredentialProvider(settings.ADMIN_API_TOKEN),
        export_sink=DirectoryExportSink(args.export or config.export_dir),
    )
    try:
        changes = {
            "search": args.search,
            "status": args.status,
            "limit": config.clamp_page_size(args.limit),
        }
        task = controller.set_filter(changes)
        if task is None:
            await controller.load()
        else:
            await task
        if args.page > 1:
            page_task = controller.change_page(args.page)
            if page_task is not None:
                await page_task

        if controller.error is not None:
            print(json.dumps({"error": controller.error.value, "message": controller.error_message}))
            return 1

        print(
            json.dumps(
                {
                    "resource": args.resource,
                    "pagination": asdict(controller.pagination) if controller.pagination else None,
                    "items": [asdict(item) for item in controller.items],
                },
                indent=2,
                default=str,
            )
        )

        if args.export is not None and not await controller.export_current_view():
            print(json.dumps({"error": "export_failed", "message": controller.error_message}))
            return 1
        return 0
    finally:
        controller.dispose()


def main() -> int:
    args = parse_args()
    configure_logging()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
