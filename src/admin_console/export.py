# This file hands export results to a download sink and builds CSV snapshots of loaded rows.
# It exists so the controller does not care whether a download lands on disk, in memory, or elsewhere.
# Server-side exports arrive as binary streams; client-side snapshots are rendered with pandas.

from __future__ import annotations

import io
import logging
import re
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import asdict, is_dataclass
from datetime import date
from pathlib import Path
from typing import Any, BinaryIO, Protocol

import pandas as pd

LOGGER = logging.getLogger("admin_console.export")

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


class ExportSink(Protocol):
    def save(self, stream: BinaryIO, filename: str) -> Path | None: ...


class DirectoryExportSink:
    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def save(self, stream: BinaryIO, filename: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / _SAFE_NAME_RE.sub("_", Path(filename).name)
        with target.open("wb") as handle:
            shutil.copyfileobj(stream, handle)
        LOGGER.info("export saved path=%s bytes=%s", target, target.stat().st_size)
        return target


def export_filename(resource: str, *, on: date) -> str:
    return f"{resource}-export-{on.isoformat()}.csv"


def items_to_csv(items: Iterable[Any], *, columns: Sequence[str] | None = None) -> bytes:
    """Render canonical resources as CSV bytes; datetimes are written in ISO-8601."""

    rows = [asdict(item) if is_dataclass(item) else dict(item) for item in items]
    frame = pd.DataFrame(rows, columns=list(columns) if columns else None)
    buffer = io.StringIO()
    frame.to_csv(buffer, index=False, date_format="%Y-%m-%dT%H:%M:%S%z")
    return buffer.getvalue().encode("utf-8")
