"""Serialisation of finished playlists to JSON and M3U files."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import suppress
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from .models import CatalogEntry

logger = logging.getLogger(__name__)


def write_text(path: Path, content: str) -> Path:
    """Write ``content`` to ``path`` via a temporary file and an atomic rename."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
    logger.info("Saved %s (%.2f KB)", path.name, path.stat().st_size / 1024)
    return path


def write_json(path: Path, payload: Any, *, pretty: bool = True) -> Path:
    content = json.dumps(
        payload,
        indent=4 if pretty else None,
        ensure_ascii=False,
    )
    return write_text(path, content)


def build_summary(
    categories: Mapping[str, int], *, generated_at: datetime, **extra: Any
) -> dict[str, Any]:
    """Return the summary index written next to a playlist."""

    return {
        "updated_at": generated_at.strftime("%Y-%m-%d %H:%M:%S"),
        "total": sum(categories.values()),
        "categories": dict(categories),
        **extra,
    }


def render_m3u(entries: Iterable[CatalogEntry]) -> str:
    """Render entries as an ``#EXTM3U`` playlist in the given order."""

    lines = ["#EXTM3U"]
    for entry in entries:
        lines.append(
            f'#EXTINF:-1 group-title="{entry.category_name}" tvg-id="{entry.title}" '
            f'tvg-logo="{entry.artwork.poster}",{entry.display_name}'
        )
        lines.append(entry.playback_url)
        lines.append("")
    return "\n".join(lines) + "\n"

