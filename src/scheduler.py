"""Wave scheduling: bounded-width concurrent batches with a pause between waves."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_WAVE_PAUSE_SEC = 1.2


async def run_in_waves(
    items: Sequence[T],
    width: int,
    worker: Callable[[T], Awaitable[R]],
    pause_sec: float = DEFAULT_WAVE_PAUSE_SEC,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[R | None]:
    """Run worker over items, at most `width` at a time.

    results[i] always belongs to items[i]. A worker that raises leaves None in
    its slot and does not disturb the rest of its wave.
    """
    if width < 1:
        raise ValueError(f"width must be at least 1, got {width}")

    results: list[R | None] = [None] * len(items)

    async def _run_slot(index: int) -> None:
        try:
            results[index] = await worker(items[index])
        except Exception as exc:
            logger.warning("Item %d failed: %s", index, exc)

    for start in range(0, len(items), width):
        if start:
            await sleep(pause_sec)
        wave = range(start, min(start + width, len(items)))
        logger.debug("Wave %d: items %d-%d", start // width + 1, wave.start, wave.stop - 1)
        await asyncio.gather(*(_run_slot(i) for i in wave))

    return results
