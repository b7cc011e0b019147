"""Session clock for per-card and per-session timing."""
import math
import time


class SessionClock:
    def __init__(self, time_source=time.monotonic):
        self._time_source = time_source

    def now(self) -> float:
        return self._time_source()

    def elapsed_seconds(self, since: float | None) -> int:
        """Whole seconds elapsed since ``since``, never negative."""
        if since is None:
            return 0
        return max(0, math.floor(self.now() - since))
