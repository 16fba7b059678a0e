from __future__ import annotations
import time
from typing import Callable, Optional, Tuple

Clock = Callable[[], float]


def ping_due(interval: Optional[float], last_sent: float, now: float) -> Tuple[bool, float]:
    """
    Decide whether a ping is due.

    Returns (send_now, last_sent). On send, last_sent moves to `now` rather
    than the theoretical boundary, so each ping may drift by up to one tick.
    """
    if interval is None:
        return False, last_sent
    if now - last_sent >= interval:
        return True, now
    return False, last_sent


class PingScheduler:
    """Keep-alive cadence, checked once per dispatcher tick."""

    def __init__(self, interval: Optional[float], clock: Clock = time.monotonic) -> None:
        self.interval = interval
        self.clock = clock
        self.last_sent = clock()

    @property
    def enabled(self) -> bool:
        return self.interval is not None

    def due(self, now: Optional[float] = None) -> bool:
        """True when a ping should go out now; records it as sent."""
        now = self.clock() if now is None else now
        send, self.last_sent = ping_due(self.interval, self.last_sent, now)
        return send

    def remaining(self, now: Optional[float] = None) -> Optional[float]:
        """Seconds until the next ping is due, None when pinging is off."""
        if self.interval is None:
            return None
        now = self.clock() if now is None else now
        return max(0.0, self.last_sent + self.interval - now)
