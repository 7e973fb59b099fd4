"""Raw SQL fragment."""

from typing import Any

from ._bases import Expression


class RawExpression(Expression):
    """SQL text used verbatim, with its own bound values (e.g. ``*`` or ``CURRENT_TIMESTAMP``)."""

    text: str
    bindings: tuple[Any, ...] = ()

    @property
    def sql(self) -> str:
        return self.text

    @property
    def values(self):
        return tuple(self.bindings)
