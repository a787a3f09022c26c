"""Request pacing between ledger calls.

The verifier and distributor call :meth:`Pacer.tick` after each unit of
work; every ``every`` ticks the pacer sleeps ``delay`` seconds to stay
under the endpoint's rate limits. :data:`NO_PACING` never sleeps.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Pacer:
    """Sleep for *delay* seconds after every *every* units of work."""

    every: int = 0
    delay: float = 0.0
    sleep: Callable[[float], None] = time.sleep

    def tick(self, count: int) -> bool:
        """Pause if *count* completed units land on the cadence. Returns True if it slept."""
        if self.every <= 0 or self.delay <= 0 or count <= 0 or count % self.every:
            return False
        logger.info("pacing.pause", after=count, seconds=self.delay)
        self.sleep(self.delay)
        return True


NO_PACING = Pacer()
