"""SQL expression types for statement building.

Each expression has a ``.sql`` property (SQL fragment with ``?`` placeholders)
and ``.values`` (tuple of bound values in the same order). Combine them with
operators (``==``, ``<``, ``.in_(...)``) and logic (``&``, ``|``).
"""

from ._bases import ArgumentedExpression, Expression
from .alias import AliasExpression
from .column import ColumnExpression
from .function import FunctionExpression
from .group import Clause, GroupExpression, render_clauses
from .nary_operator import NaryOperatorExpression
from .order import OrderExpression
from .raw import RawExpression
from .subquery import ExistsExpression, InExpression, SubqueryExpression
from .table import TableExpression
from .unary_operator import UnaryOperatorExpression

__all__ = [
    "AliasExpression",
    "ArgumentedExpression",
    "Clause",
    "ColumnExpression",
    "ExistsExpression",
    "Expression",
    "FunctionExpression",
    "GroupExpression",
    "InExpression",
    "NaryOperatorExpression",
    "OrderExpression",
    "RawExpression",
    "SubqueryExpression",
    "TableExpression",
    "UnaryOperatorExpression",
    "render_clauses",
]
