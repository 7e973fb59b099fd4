"""Base expression types for SQL expression trees."""

from __future__ import annotations
from typing import Any, Tuple

from pydantic import BaseModel, Field as PydanticField


class Expression(BaseModel):
    """Base type for all SQL expression nodes.

    Subclasses must implement the ``sql`` property. The default ``values``
    is an empty tuple; expression types that contain literals override it
    to return the bound values in the same order as ``?`` placeholders in ``sql``.
    """

    model_config = {"arbitrary_types_allowed": True}

    @property
    def sql(self) -> str:
        """SQL fragment for this expression, with ``?`` for bound parameters."""
        raise NotImplementedError("Subclasses must implement `sql` property")

    @property
    def values(self) -> tuple[Any, ...]:
        """Bound values for placeholders in ``sql``, in order."""
        return ()

    def in_(self, other: Any):
        """Build an IN expression over a list of values or a sub-query."""
        from .subquery import InExpression
        return InExpression(expression=self, options=other)

    def not_in(self, other: Any):
        from .subquery import InExpression
        return InExpression(expression=self, options=other, negated=True)

    def is_null(self):
        """Build an IS NULL expression."""
        from .unary_operator import UnaryOperatorExpression
        return UnaryOperatorExpression(symbol="IS NULL", arguments=(self,), postfix=True)

    def is_not_null(self):
        """Build an IS NOT NULL expression."""
        from .unary_operator import UnaryOperatorExpression
        return UnaryOperatorExpression(symbol="IS NOT NULL", arguments=(self,), postfix=True)

    def _isnull(self, isnull: bool):
        """IS NULL or IS NOT NULL according to the boolean (for ``where(column__isnull=True)``)."""
        return self.is_null() if isnull else self.is_not_null()

    def between(self, low: Any, high: Any | None = None):
        """Inclusive range: (expr >= low) AND (expr <= high)."""
        if high is None:
            low, high = low
        return (self >= low) & (self <= high)

    def negate(self):
        """Build ``NOT (expr)``."""
        from .unary_operator import UnaryOperatorExpression
        from .group import GroupExpression
        group = self if isinstance(self, GroupExpression) else GroupExpression.of(self)
        return UnaryOperatorExpression(symbol="NOT", arguments=(group,))

    def label(self, alias: str):
        """Build ``expr AS alias`` for a select list."""
        from .alias import AliasExpression
        return AliasExpression(expression=self, alias=alias)

    def __and__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="AND", arguments=(self, other))

    def __or__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="OR", arguments=(self, other))

    def __eq__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        if other is None:
            return self.is_null()
        return NaryOperatorExpression(symbol="=", arguments=(self, other))

    def __ne__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        if other is None:
            return self.is_not_null()
        return NaryOperatorExpression(symbol="!=", arguments=(self, other))

    def __lt__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="<", arguments=(self, other))

    def __le__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="<=", arguments=(self, other))

    def __gt__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol=">", arguments=(self, other))

    def __ge__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol=">=", arguments=(self, other))

    __hash__ = object.__hash__

    def compare(self, operator: str, other: Any):
        """Build a comparison from an operator string (``"="``, ``">="``, ``"like"``...)."""
        from .nary_operator import NaryOperatorExpression
        symbol = operator.upper()
        if symbol == "<>":
            symbol = "!="
        if symbol in ("IN", "NOT IN"):
            return self.in_(other) if symbol == "IN" else self.not_in(other)
        if symbol == "=" and other is None:
            return self.is_null()
        if symbol == "!=" and other is None:
            return self.is_not_null()
        if symbol not in NaryOperatorExpression.COMPARISON_SYMBOLS:
            raise ValueError(f"Unsupported operator: {operator!r}")
        return NaryOperatorExpression(symbol=symbol, arguments=(self, other))

    def like(self, pattern: str):
        """Build a LIKE expression with the pattern used as given."""
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="LIKE", arguments=(self, pattern))

    def contains(self, substring: str):
        return self.like(f"%{substring}%")

    def startswith(self, prefix: str):
        return self.like(f"{prefix}%")

    def endswith(self, suffix: str):
        return self.like(f"%{suffix}")

    def lower(self):
        """Build a LOWER function call."""
        from .function import FunctionExpression
        return FunctionExpression(symbol="LOWER", arguments=(self,))

    def upper(self):
        """Build a UPPER function call."""
        from .function import FunctionExpression
        return FunctionExpression(symbol="UPPER", arguments=(self,))


class ArgumentedExpression(Expression):
    """Base for expressions that have a symbol and a tuple of arguments.

    Used by function calls (e.g. ``COUNT(*)``) and operators (e.g. ``=``, ``AND``).
    ``values`` is the concatenation of literal argument values; nested expressions
    are recursed into.
    """

    symbol: str
    arguments: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @staticmethod
    def _argument_to_sql(argument: Any) -> str:
        """Render one argument as SQL: expression's ``sql`` or ``?`` for literals."""
        if isinstance(argument, Expression):
            return argument.sql
        return "?"

    @staticmethod
    def _argument_to_values(argument: Any) -> tuple[Any, ...]:
        """Collect values for one argument: recurse into expressions, else ``(argument,)``."""
        if isinstance(argument, Expression):
            return argument.values
        return (argument,)

    @property
    def values(self) -> tuple[Any, ...]:
        """All literal values from arguments, in order (recursing into nested expressions)."""
        return sum(map(self._argument_to_values, self.arguments), ())
