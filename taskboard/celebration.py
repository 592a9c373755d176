"""
Celebration flag shown when a task lands in Done.

Triggering sets a visible-until deadline and schedules one clear callback.
Triggering again while visible just pushes the deadline out; a clear
callback that fires before the current deadline does nothing.
"""
import random
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional

EMOJIS = ["😊", "👍", "🎉", "😄", "👏", "🌟"]
BURST_SIZE = 8
DEFAULT_DURATION = 2.0


@dataclass
class Particle:
    """One floating emoji of the burst."""
    emoji: str
    x: float       # horizontal offset, percent of the viewport
    delay: float   # animation delay in seconds


def _timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class Celebration:
    """One-shot timed presentational flag."""

    def __init__(
        self,
        duration: float = DEFAULT_DURATION,
        clock: Callable[[], float] = time.monotonic,
        schedule: Callable[[float, Callable[[], None]], object] = _timer,
        rng: Optional[random.Random] = None,
    ):
        self.duration = duration
        self._clock = clock
        self._schedule = schedule
        self._rng = rng or random.Random()
        self._deadline: Optional[float] = None
        self.particles: List[Particle] = []
        self.trigger_count = 0
        self._lock = threading.Lock()

    @property
    def visible(self) -> bool:
        with self._lock:
            return self._deadline is not None and self._clock() < self._deadline

    def trigger(self) -> None:
        particles = [
            Particle(
                emoji=self._rng.choice(EMOJIS),
                x=self._rng.random() * 100,
                delay=self._rng.random() * 0.3,
            )
            for _ in range(BURST_SIZE)
        ]
        with self._lock:
            self.trigger_count += 1
            self._deadline = self._clock() + self.duration
            self.particles = particles
        self._schedule(self.duration, self._clear)

    def _clear(self) -> None:
        with self._lock:
            if self._deadline is not None and self._clock() < self._deadline:
                return  # re-triggered meanwhile; a later callback clears it
            self._deadline = None
            self.particles = []

    def to_dict(self) -> Dict[str, Any]:
        """Presentation payload: visibility plus the emoji burst."""
        with self._lock:
            particles = list(self.particles)
        return {
            "visible": self.visible,
            "particles": [asdict(p) for p in particles],
        }
