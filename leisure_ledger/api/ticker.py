"""One-second asyncio ticker driving the tracker"""

import asyncio
import logging

from leisure_ledger.services.tracker import TrackerService


async def run_ticker(tracker: TrackerService, interval: float = 1.0) -> None:
    """
    Call tracker.tick() every interval seconds until cancelled.

    A failing tick is logged and the loop carries on.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            tracker.tick()
        except Exception as e:
            logging.error(f"Tick failed: {e}", extra={"step": "tick"}, exc_info=True)


def start_ticker(tracker: TrackerService, interval: float = 1.0) -> asyncio.Task:
    return asyncio.create_task(run_ticker(tracker, interval), name="leisure-ledger-ticker")
