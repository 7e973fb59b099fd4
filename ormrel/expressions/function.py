"""SQL function calls."""

import re
from typing import Any, Optional

from ._bases import ArgumentedExpression

_FUNCTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FunctionExpression(ArgumentedExpression):
    """``NAME(arg, ...)``; a ``COUNT`` without arguments renders as ``COUNT(*)``."""

    distinct: bool = False

    @classmethod
    def count(cls, argument: Optional[Any] = None, distinct: bool = False) -> "FunctionExpression":
        return cls(symbol="COUNT", arguments=() if argument is None else (argument,), distinct=distinct)

    @property
    def sql(self) -> str:
        if not _FUNCTION_NAME.match(self.symbol or ""):
            raise ValueError(f"Invalid SQL function name: {self.symbol!r}")
        arguments = ", ".join(map(self._argument_to_sql, self.arguments))
        if not arguments and self.symbol.upper() == "COUNT":
            arguments = "*"
        if self.distinct:
            arguments = f"DISTINCT {arguments}"
        return f"{self.symbol}({arguments})"
