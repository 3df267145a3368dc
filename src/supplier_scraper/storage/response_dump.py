"""Debug capture of raw upstream documents."""
from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from pathlib import Path

_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]+")


class ResponseDump:
    """Writes raw response bodies to disk for offline inspection and fixture capture.

    One file per label and day; a later capture on the same day replaces the
    earlier one.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, label: str, *, now: datetime | None = None) -> Path:
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
        safe = _UNSAFE.sub("_", label).strip("_").lower()
        return self.root / f"{safe}_{stamp}.html"

    async def write(self, label: str, body: str) -> Path:
        now = datetime.now(timezone.utc)
        path = self.path_for(label, now=now)
        header = (
            "<!--\n"
            f"Label: {label}\n"
            f"Captured: {now.isoformat()}\n"
            "-->\n\n"
        )
        await asyncio.to_thread(path.write_text, header + body, encoding="utf-8")
        return path
