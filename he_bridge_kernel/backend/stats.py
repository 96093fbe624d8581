"""Operation counters and timing shared by a context and its bridge."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator
import threading
import time


_COUNTERS = (
    "encryptions",
    "decryptions",
    "additions",
    "multiplications",
    "comparisons",
    "lifts",
    "selects",
    "bootstraps",
    "scheme_switches",
)

_TIMERS = (
    "encrypt_time_ms",
    "decrypt_time_ms",
    "arithmetic_time_ms",
    "compare_time_ms",
    "lift_time_ms",
)


@dataclass
class OperationStats:
    """Statistics for HE operations issued through one context."""
    # Counts
    encryptions: int = 0
    decryptions: int = 0
    additions: int = 0
    multiplications: int = 0
    comparisons: int = 0
    lifts: int = 0
    selects: int = 0
    bootstraps: int = 0
    scheme_switches: int = 0

    # Timing (cumulative, milliseconds)
    encrypt_time_ms: float = 0.0
    decrypt_time_ms: float = 0.0
    arithmetic_time_ms: float = 0.0
    compare_time_ms: float = 0.0
    lift_time_ms: float = 0.0

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, counter: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def add_time(self, timer: str, elapsed_ms: float) -> None:
        with self._lock:
            setattr(self, timer, getattr(self, timer) + elapsed_ms)

    @contextmanager
    def timed(self, timer: str) -> Iterator[None]:
        """Accumulate wall time of the enclosed block into ``timer``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.add_time(timer, (time.perf_counter() - start) * 1000)

    def snapshot(self) -> 'OperationStats':
        """Copy of the current counters."""
        with self._lock:
            values = {name: getattr(self, name) for name in _COUNTERS + _TIMERS}
        return OperationStats(**values)

    def reset(self) -> None:
        """Reset all statistics."""
        with self._lock:
            for name in _COUNTERS:
                setattr(self, name, 0)
            for name in _TIMERS:
                setattr(self, name, 0.0)

    def __sub__(self, other: 'OperationStats') -> 'OperationStats':
        values = {name: getattr(self, name) - getattr(other, name) for name in _COUNTERS + _TIMERS}
        return OperationStats(**values)

    @property
    def total_time_ms(self) -> float:
        return sum(getattr(self, name) for name in _TIMERS)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {name: getattr(self, name) for name in _COUNTERS}
        for name in _TIMERS:
            result[name] = getattr(self, name)
        result["total_time_ms"] = self.total_time_ms
        return result
