"""Pacing between consecutive requests on one upstream session."""
from __future__ import annotations

import asyncio
import random


async def vendor_pause(seconds: float, jitter: float = 0.0) -> None:
    """Sleep ``seconds`` plus up to ``jitter`` extra seconds between vendor searches."""
    delay = max(seconds, 0.0)
    if jitter > 0:
        delay += random.uniform(0.0, jitter)
    if delay:
        await asyncio.sleep(delay)
