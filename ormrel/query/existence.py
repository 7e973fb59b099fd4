"""Relation existence predicates (``has``, ``where_has``, ``doesnt_have``...).

A dotted path such as ``"users.country"`` compiles to nested correlated
sub-queries, one per segment::

    EXISTS (SELECT * FROM users WHERE countries.id = users.countryId
            AND EXISTS (SELECT * FROM countries AS countries_reserved_0
                        WHERE users.countryId = countries_reserved_0.id))

A segment whose table already appears on the path gets a fresh
``<table>_reserved_<n>`` alias from the outer query's :class:`AliasContext`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..expressions import ExistsExpression, Expression, NaryOperatorExpression, SubqueryExpression
from .builder import ModelQueryBuilder, apply_callback

_PLAIN_EXISTENCE = ((">=", 1), (">", 0))


class ExistenceCompiler:
    """Compiles relation paths into predicates on ``builder``'s rows."""

    def __init__(self, builder: ModelQueryBuilder):
        self.builder = builder

    def _used_tables(self) -> set[str]:
        return {self.builder.descriptor.table, self.builder.reference}

    def _allocate(self, table: str, used: set[str]) -> Optional[str]:
        alias = self.builder.alias_context.next_alias(table) if table in used else None
        used.add(alias or table)
        return alias

    def _sub_query(self, parent: ModelQueryBuilder, name: str, used: set[str]) -> ModelQueryBuilder:
        relation = parent.descriptor.relation(name)
        relation.boot()
        alias = self._allocate(relation.existence_table(), used)
        bridge_alias = None
        if relation.bridge_table is not None:
            bridge_alias = self._allocate(relation.bridge_table, used)
        return relation.exists_subquery(parent, alias, bridge_alias)

    def segment(self, name: str, callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        """Correlated sub-query for one relation of the builder's model, e.g. for ``with_count``."""
        sub = self._sub_query(self.builder, name, self._used_tables())
        if callback is not None:
            sub = apply_callback(callback, sub)
        return sub

    def compile(self, path: str, callback: Optional[Callable[[Any], Any]] = None,
                operator: str = ">=", count: int = 1, negate: bool = False) -> Expression:
        """Predicate keeping rows with related rows along ``path``.

        ``callback`` constrains the last segment; ``operator`` and ``count``
        compare the number of related rows of the last segment.
        """
        names = path.split(".")
        expression = self._compile(self.builder, names, self._used_tables(), callback, operator, count)
        return expression.negate() if negate else expression

    def _compile(self, parent: ModelQueryBuilder, names: list[str], used: set[str],
                 callback, operator: str, count: int) -> Expression:
        sub = self._sub_query(parent, names[0], used)
        if len(names) > 1:
            inner = self._compile(sub, names[1:], used, callback, operator, count)
            return ExistsExpression(statement=sub._add(inner).to_statement())
        if callback is not None:
            sub = apply_callback(callback, sub)
        if (operator, count) in _PLAIN_EXISTENCE:
            return ExistsExpression(statement=sub.to_statement())
        counted = SubqueryExpression(statement=sub.to_statement().count_statement(alias=None))
        return NaryOperatorExpression(symbol=operator, arguments=(counted, count))
