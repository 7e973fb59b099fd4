"""Eager loading of relations for a batch of rows.

One statement is issued per relation and per nesting level, whatever the
number of owners (morphTo issues one per owner type); nested preloads run on
the rows just fetched.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..registry import registry
from .builder import split_preload_path


class Preloader:
    """Collects preload requests for one model and runs them on owner rows."""

    def __init__(self, model: type, client=None):
        self.model = model
        self.client = client
        self.requests: dict[str, Optional[Callable[[Any], Any]]] = {}

    def preload(self, name: str, callback: Optional[Callable[[Any], Any]] = None) -> Preloader:
        name, callback = split_preload_path(name, callback)
        registry.get(self.model).relation(name).boot()
        self.requests[name] = callback
        return self

    def process(self, owners: list) -> list:
        """Load every requested relation onto ``owners``; does nothing for no owners."""
        if not owners:
            return owners
        for name, callback in self.requests.items():
            self._process_relation(owners, name, callback)
        return owners

    def _process_relation(self, owners: list, name: str, callback) -> None:
        relation = registry.get(self.model).relation(name)
        relation.eager_load(owners, callback, self.client or owners[0].trx)
