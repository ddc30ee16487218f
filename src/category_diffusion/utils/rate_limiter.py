"""Request pacing for polite API usage."""

import asyncio
from time import monotonic


class RateLimiter:
    """Enforce a minimum interval between the starts of consecutive requests.

    All wiki requests are issued one at a time, so a lock plus a timestamp is
    enough; there is no concurrency slot to hand out.
    """

    def __init__(self, delay_seconds: float = 0.1):
        self.delay_seconds = delay_seconds
        self._last_request_time: float = 0.0
        self._lock = asyncio.Lock()
        self.request_count: int = 0

    async def acquire(self) -> None:
        """Wait until at least ``delay_seconds`` have passed since the last start."""
        async with self._lock:
            if self.request_count:
                elapsed = monotonic() - self._last_request_time
                wait_time = self.delay_seconds - elapsed
                if wait_time > 0:
                    await asyncio.sleep(wait_time)

            self._last_request_time = monotonic()
            self.request_count += 1
