from __future__ import annotations

import time

import anyio


async def run_in_worker(fn, *args, **kwargs):
    """
    Run a blocking call (model inference) on a worker thread.

    If the awaiting task is cancelled the thread is abandoned and its result discarded.
    Returns (result, duration_seconds).
    """
    start = time.perf_counter()
    result = await anyio.to_thread.run_sync(lambda: fn(*args, **kwargs), abandon_on_cancel=True)
    duration = time.perf_counter() - start
    return result, duration
