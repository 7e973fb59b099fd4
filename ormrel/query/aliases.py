"""Self-join alias allocation.

One :class:`AliasContext` is created per top-level query and shared by every
builder derived from it (clones, existence sub-queries, count sub-queries), so
aliases are unique within one compiled statement without any process-wide
state.
"""

import threading


class AliasContext:
    """Allocates ``<table>_reserved_<n>`` aliases from a counter."""

    PATTERN = "{table}_reserved_{index}"

    def __init__(self, start: int = 0):
        self._start = start
        self._counter = start
        self._lock = threading.Lock()

    @property
    def counter(self) -> int:
        return self._counter

    def next_alias(self, table: str) -> str:
        with self._lock:
            index = self._counter
            self._counter += 1
        return self.PATTERN.format(table=table, index=index)

    def reset(self) -> None:
        with self._lock:
            self._counter = self._start
