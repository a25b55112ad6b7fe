"""
Stream orchestration.
"""

import asyncio
import logging
import sys
from collections.abc import AsyncIterable

from signaldesk.analysis.service import AnalysisService
from signaldesk.marketdata.instrument import Tick


log = logging.getLogger(__name__)


__all__ = [
    "configure_logging",
    "run_analysis",
]


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """
    Configure root logger with console output.

    By default, this is non-destructive: if the root logger already has handlers,
    it will do nothing (assuming the application has configured logging).

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        force: If True, clear existing handlers and force this configuration
    """
    root_logger = logging.getLogger()

    if root_logger.hasHandlers() and not force:
        return

    root_logger.setLevel(level.upper())

    if force:
        root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


async def run_analysis(service: AnalysisService, ticks: AsyncIterable[Tick]) -> int:
    """
    Feed every tick from *ticks* into *service* until the stream ends.

    At the end of the stream, warm-ups still in flight are allowed to finish.
    The service is closed on the way out in every case, cancelling whatever
    is still pending after an error or cancellation.

    Returns:
        Number of ticks consumed.
    """
    count = 0
    try:
        async for tick in ticks:
            await service.on_tick(tick)
            count += 1
        await service.drain()
    except asyncio.CancelledError:
        log.info("Analysis stream cancelled after %d ticks", count)
        raise
    finally:
        await service.close()

    log.info("Analysis stream ended after %d ticks", count)
    return count
