"""Id generators for newly added entities."""
import itertools
import threading
import time
import uuid
from abc import ABC, abstractmethod


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self, prefix: str) -> str:
        """Return a fresh id such as ``income-...``."""


class UuidIdGenerator(IdGenerator):
    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex}"


class TimestampIdGenerator(IdGenerator):
    """Epoch-millisecond ids, bumped so two calls in one tick never collide."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def new_id(self, prefix: str) -> str:
        with self._lock:
            now = int(time.time() * 1000)
            self._last = now if now > self._last else self._last + 1
            return f"{prefix}-{self._last}"


class SequentialIdGenerator(IdGenerator):
    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"


def make_id_generator(strategy: str) -> IdGenerator:
    if strategy == "timestamp":
        return TimestampIdGenerator()
    if strategy == "uuid":
        return UuidIdGenerator()
    if strategy == "sequential":
        return SequentialIdGenerator()
    raise ValueError(f"Unknown id strategy: {strategy}")
