from __future__ import annotations

import itertools
import threading
from typing import Generic, Optional, TypeVar


T = TypeVar("T")


class GenerationGuard(Generic[T]):
    """
    Last-request-wins holder for the result of a repeatable action.

    Every invocation takes a token from `begin()`; its completion is stored by
    `commit()` only if no newer invocation has started since.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._current = 0
        self._value: Optional[T] = None

    def begin(self) -> int:
        with self._lock:
            self._current = next(self._counter)
            return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current

    def commit(self, token: int, value: T) -> bool:
        with self._lock:
            if token != self._current:
                return False
            self._value = value
            return True

    @property
    def value(self) -> Optional[T]:
        return self._value
