import asyncio
import time
from typing import Optional
import structlog

logger = structlog.get_logger()


class RateLimiter:
    """Token bucket rate limiter shared by concurrent calls to one source"""

    def __init__(
        self,
        requests_per_minute: int = 60,
        burst_size: int = 10,
        source: str = "unknown",
    ):
        self.rate = requests_per_minute / 60.0
        self.burst_size = burst_size
        self.source = source
        self.tokens = float(burst_size)
        self.last_update = time.monotonic()
        self._lock: Optional[asyncio.Lock] = None

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.burst_size, self.tokens + elapsed * self.rate)
        self.last_update = now

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary"""
        # Created lazily so the limiter can be built outside an event loop
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            self._refill()
            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
                logger.debug(
                    "rate_limit_wait", source=self.source, wait_seconds=round(wait_time, 2)
                )
                await asyncio.sleep(wait_time)
                self._refill()
            self.tokens -= 1
