"""Query builder for models.

A :class:`ModelQueryBuilder` is immutable: every method returns a new builder.
Predicates are recorded as clauses tagged with the composition stage that
added them, and the final statement lists them stage by stage:

1. the base shape (table, joins, relation constraints),
2. a relation's ``on_query`` hook,
3. the model's global scopes, in registration order, minus withheld ones,
4. everything the caller added.

Global scopes are folded in when the statement is compiled, so withholding a
scope (``without_global_scope``, ``with_trashed``) works at any point.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel, Field

from ..errors import RowNotFoundError
from ..expressions import (
    Clause,
    ColumnExpression,
    ExistsExpression,
    Expression,
    GroupExpression,
    NaryOperatorExpression,
    OrderExpression,
    RawExpression,
    SubqueryExpression,
    TableExpression,
)
from ..registry import registry
from ..statement import Join, Statement
from .aliases import AliasContext

logger = logging.getLogger("ormrel")

# Django-style lookup -> Expression method for where(**kwargs).
_WHERE_LOOKUP_MAP: dict[str, str] = {
    "exact": "__eq__",
    "ne": "__ne__",
    "lt": "__lt__",
    "lte": "__le__",
    "gt": "__gt__",
    "gte": "__ge__",
    "in": "in_",
    "not_in": "not_in",
    "range": "between",
    "isnull": "_isnull",
    "contains": "contains",
    "startswith": "startswith",
    "endswith": "endswith",
    "like": "like",
}

SOFT_DELETES_SCOPE = "soft_deletes"


class QueryStage(enum.IntEnum):
    """Composition stage of a clause; clauses render in stage order."""

    SHAPE = 0
    HOOK = 1
    SCOPE = 2
    USER = 3


def apply_callback(callback: Callable[..., Any], builder: ModelQueryBuilder, *args, **kwargs):
    """Call a query callback and return the builder it produced.

    Builders are immutable, so callbacks must return the builder they derive.
    """
    result = callback(builder, *args, **kwargs)
    if not isinstance(result, ModelQueryBuilder):
        raise TypeError(
            f"Query callback {getattr(callback, '__name__', callback)!r} must return "
            f"the query builder it was given, got {type(result).__name__}"
        )
    return result


def compose_clauses(clauses: list[Clause]) -> list[Clause]:
    """Order clauses by stage.

    When clauses come from more than one stage, a stage containing an OR is
    wrapped in parentheses so it cannot widen the predicates of other stages.
    """
    stages = sorted({clause.stage for clause in clauses})
    if len(stages) < 2:
        return list(clauses)
    result: list[Clause] = []
    for stage in stages:
        staged = [clause for clause in clauses if clause.stage == stage]
        if any(clause.boolean == "OR" for clause in staged):
            result.append(Clause(expression=GroupExpression(clauses=staged), stage=stage))
        else:
            result.extend(staged)
    return result


def split_preload_path(name: str, callback=None):
    """``("a.b", cb)`` -> ``("a", lambda q: q.preload("b", cb))``."""
    if "." not in name:
        return name, callback
    name, rest = name.split(".", 1)

    def nested(query):
        return query.preload(rest, callback)

    return name, nested


class PreloadRequest(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    name: str
    callback: Optional[Callable[[Any], Any]] = None


class ModelQueryBuilder(BaseModel):
    """Immutable query over one model's table."""

    model_config = {"arbitrary_types_allowed": True}

    model: Any
    """The Model subclass queried."""
    client: Any = None
    """Connection or transaction; the model's connection when ``None``."""
    alias: Optional[str] = None
    alias_context: AliasContext = Field(default_factory=AliasContext)
    columns: list[Expression] = Field(default_factory=list)
    joins: list[Join] = Field(default_factory=list)
    clauses: list[Clause] = Field(default_factory=list)
    group_by_expressions: list[Expression] = Field(default_factory=list)
    order_by_expressions: list[OrderExpression] = Field(default_factory=list)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    withheld_scopes: frozenset[str] = frozenset()
    withhold_all_scopes: bool = False
    scopes_applied: bool = False
    stage: QueryStage = QueryStage.USER
    """Stage assigned to clauses added by this builder."""
    preloads: list[PreloadRequest] = Field(default_factory=list)

    def clone_with(self, **changes) -> ModelQueryBuilder:
        """Return a copy of this builder with the given fields replaced."""
        return self.model_copy(update=changes)

    def at_stage(self, stage: QueryStage) -> ModelQueryBuilder:
        return self.clone_with(stage=stage)

    # table and columns

    @property
    def descriptor(self):
        return registry.get(self.model)

    @property
    def table(self) -> TableExpression:
        return TableExpression(name=self.descriptor.table, alias=self.alias)

    @property
    def reference(self) -> str:
        """Name qualifying this query's columns: its alias, else its table name."""
        return self.alias or self.descriptor.table

    def get_client(self):
        return self.client or self.model.connection()

    @property
    def dialect(self):
        return self.get_client().dialect

    def qualify(self, column: str | Expression) -> Expression:
        """Expression for a column reference.

        Logical attribute names are mapped to physical columns and qualified
        with this query's table or alias; ``"table.column"`` is used as given.
        """
        if isinstance(column, Expression):
            return column
        if not isinstance(column, str):
            raise TypeError(f"Column reference must be a str or an Expression, got {type(column)}")
        if "." in column:
            return ColumnExpression.parse(column)
        return self.table.column(self.descriptor.column_name(column))

    # where

    def _add(self, expression: Expression, boolean: str = "AND") -> ModelQueryBuilder:
        clause = Clause(boolean=boolean, expression=expression, stage=self.stage)
        return self.clone_with(clauses=self.clauses + [clause])

    def _where_kwargs_to_expressions(self, kwargs: dict[str, Any], qualify) -> list[Expression]:
        """Convert Django-style where(**kwargs) into a list of expressions (ANDed by caller)."""
        result: list[Expression] = []
        for key, value in kwargs.items():
            name, _, lookup = key.partition("__")
            lookup = lookup or "exact"
            method = _WHERE_LOOKUP_MAP.get(lookup)
            if method is None:
                raise ValueError(f"Unknown lookup: {lookup!r}")
            result.append(getattr(qualify(name), method)(value))
        return result

    def _predicates(self, args: tuple, kwargs: dict[str, Any], qualify=None) -> list[Expression]:
        qualify = qualify or self.qualify
        expressions: list[Expression] = []
        if args and isinstance(args[0], str):
            if len(args) == 2:
                expressions.append(qualify(args[0]).compare("=", args[1]))
            elif len(args) == 3:
                expressions.append(qualify(args[0]).compare(args[1], args[2]))
            else:
                raise TypeError("Expected where(column, value) or where(column, operator, value)")
        else:
            for argument in args:
                if isinstance(argument, Expression):
                    expressions.append(argument)
                elif callable(argument):
                    group = self._group(argument)
                    if group is not None:
                        expressions.append(group)
                else:
                    raise TypeError(f"Cannot use {argument!r} as a predicate")
        expressions.extend(self._where_kwargs_to_expressions(kwargs, qualify))
        return expressions

    def _where(self, boolean: str, args: tuple, kwargs: dict[str, Any],
               negate: bool = False, qualify=None) -> ModelQueryBuilder:
        expressions = self._predicates(args, kwargs, qualify)
        if not expressions:
            return self
        if len(expressions) == 1:
            expression = expressions[0]
        else:
            expression = GroupExpression(clauses=[Clause(expression=e) for e in expressions])
        if negate:
            expression = expression.negate()
        return self._add(expression, boolean)

    def _group(self, callback) -> Optional[GroupExpression]:
        """Run a grouped-where callback on an empty copy and wrap what it added in parentheses."""
        result = apply_callback(callback, self.clone_with(clauses=[]))
        if not result.clauses:
            return None
        return GroupExpression(clauses=list(result.clauses))

    def where(self, *args: Any, **kwargs: Any) -> ModelQueryBuilder:
        """Add predicates joined with AND.

        Examples:
            where(User.age > 18)
            where("age", ">", 18)
            where(username="virk", age__gte=18)
            where(lambda q: q.where(age=18).or_where(age=19))
        """
        return self._where("AND", args, kwargs)

    def or_where(self, *args: Any, **kwargs: Any) -> ModelQueryBuilder:
        return self._where("OR", args, kwargs)

    def where_not(self, *args: Any, **kwargs: Any) -> ModelQueryBuilder:
        return self._where("AND", args, kwargs, negate=True)

    def or_where_not(self, *args: Any, **kwargs: Any) -> ModelQueryBuilder:
        return self._where("OR", args, kwargs, negate=True)

    def _where_in(self, column, values, boolean: str, negate: bool, qualify=None) -> ModelQueryBuilder:
        if isinstance(values, ModelQueryBuilder):
            values = values.to_statement()
        expression = (qualify or self.qualify)(column)
        return self._add(expression.not_in(values) if negate else expression.in_(values), boolean)

    def where_in(self, column, values) -> ModelQueryBuilder:
        """``column IN (...)`` over a list of values, a builder or a Statement."""
        return self._where_in(column, values, "AND", False)

    def or_where_in(self, column, values) -> ModelQueryBuilder:
        return self._where_in(column, values, "OR", False)

    def where_not_in(self, column, values) -> ModelQueryBuilder:
        return self._where_in(column, values, "AND", True)

    def or_where_not_in(self, column, values) -> ModelQueryBuilder:
        return self._where_in(column, values, "OR", True)

    def where_null(self, column) -> ModelQueryBuilder:
        return self._add(self.qualify(column).is_null())

    def or_where_null(self, column) -> ModelQueryBuilder:
        return self._add(self.qualify(column).is_null(), "OR")

    def where_not_null(self, column) -> ModelQueryBuilder:
        return self._add(self.qualify(column).is_not_null())

    def or_where_not_null(self, column) -> ModelQueryBuilder:
        return self._add(self.qualify(column).is_not_null(), "OR")

    def where_column(self, first, operator: str, second=None) -> ModelQueryBuilder:
        """Compare two columns (``where_column("updatedAt", ">", "createdAt")``)."""
        if second is None:
            operator, second = "=", operator
        expression = NaryOperatorExpression(
            symbol=operator, arguments=(self.qualify(first), self.qualify(second))
        )
        return self._add(expression)

    def where_exists(self, query: ModelQueryBuilder | Statement) -> ModelQueryBuilder:
        if isinstance(query, ModelQueryBuilder):
            query = query.to_statement()
        return self._add(ExistsExpression(statement=query))

    def where_not_exists(self, query: ModelQueryBuilder | Statement) -> ModelQueryBuilder:
        if isinstance(query, ModelQueryBuilder):
            query = query.to_statement()
        return self._add(ExistsExpression(statement=query, negated=True))

    # select, join, order, limit

    def select(self, *columns: str | Expression) -> ModelQueryBuilder:
        return self.clone_with(columns=self.columns + [self.qualify(c) for c in columns])

    def join(self, table: str, on: Expression, kind: str = "INNER") -> ModelQueryBuilder:
        join = Join(kind=kind, table=TableExpression(name=table), on=on)
        return self.clone_with(joins=self.joins + [join])

    def left_join(self, table: str, on: Expression) -> ModelQueryBuilder:
        return self.join(table, on, kind="LEFT")

    def group_by(self, *columns: str | Expression) -> ModelQueryBuilder:
        return self.clone_with(
            group_by_expressions=self.group_by_expressions + [self.qualify(c) for c in columns]
        )

    def order_by(self, column: str | Expression, direction: str = "asc") -> ModelQueryBuilder:
        if isinstance(column, OrderExpression):
            order = column
        else:
            order = OrderExpression(expression=self.qualify(column), desc=direction.lower() == "desc")
        return self.clone_with(order_by_expressions=self.order_by_expressions + [order])

    def limit(self, limit: Optional[int]) -> ModelQueryBuilder:
        return self.clone_with(limit_value=limit)

    def offset(self, offset: Optional[int]) -> ModelQueryBuilder:
        return self.clone_with(offset_value=offset)

    def for_page(self, page: int, per_page: int) -> ModelQueryBuilder:
        return self.offset((max(page, 1) - 1) * per_page).limit(per_page)

    # scopes

    def without_global_scope(self, name: str) -> ModelQueryBuilder:
        return self.clone_with(withheld_scopes=self.withheld_scopes | {name})

    def without_global_scopes(self, *names: str) -> ModelQueryBuilder:
        """Withhold the named global scopes, or all of them when no name is given."""
        if not names:
            return self.clone_with(withhold_all_scopes=True)
        return self.clone_with(withheld_scopes=self.withheld_scopes | set(names))

    def apply(self, scope: str | Callable[..., Any], *args: Any, **kwargs: Any) -> ModelQueryBuilder:
        """Apply a local scope declared with ``@scope`` (by name) or an ad-hoc callable."""
        if isinstance(scope, str):
            try:
                scope = self.descriptor.local_scopes[scope]
            except KeyError as error:
                raise ValueError(f"No scope named `{scope}` on {self.model.__name__}") from error
        return apply_callback(scope, self, *args, **kwargs)

    def _soft_deletes(self, method: str):
        from ..model.soft_deletes import SoftDeletes
        capability = self.descriptor.capability(SoftDeletes)
        if capability is None:
            raise NotImplementedError(f"{method} only applies to models with soft deletes")
        return capability

    def with_trashed(self) -> ModelQueryBuilder:
        """Include soft-deleted rows."""
        self._soft_deletes("with_trashed")
        return self.without_global_scope(SOFT_DELETES_SCOPE)

    def only_trashed(self) -> ModelQueryBuilder:
        capability = self._soft_deletes("only_trashed")
        return self.without_global_scope(SOFT_DELETES_SCOPE).where_not_null(capability.column)

    def without_trashed(self) -> ModelQueryBuilder:
        capability = self._soft_deletes("without_trashed")
        return self.without_global_scope(SOFT_DELETES_SCOPE).where_null(capability.column)

    def _with_global_scopes(self) -> ModelQueryBuilder:
        if self.scopes_applied or self.withhold_all_scopes:
            return self
        builder = self.clone_with(stage=QueryStage.SCOPE, scopes_applied=True)
        for scope in self.descriptor.global_scopes:
            if scope.name in self.withheld_scopes:
                continue
            builder = apply_callback(scope.callback, builder)
        return builder.at_stage(self.stage)

    # relations

    def preload(self, name: str, callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        """Eager load a relation on every row this query returns.

        ``preload("posts.comments")`` is a shortcut for
        ``preload("posts", lambda q: q.preload("comments"))``.
        """
        name, callback = split_preload_path(name, callback)
        self.descriptor.relation(name)
        requests = [request for request in self.preloads if request.name != name]
        requests.append(PreloadRequest(name=name, callback=callback))
        return self.clone_with(preloads=requests)

    def has(self, relation: str, operator: str = ">=", count: int = 1,
            boolean: str = "AND", callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        """Keep rows having related rows through a (dotted) relation path."""
        from .existence import ExistenceCompiler
        expression = ExistenceCompiler(self).compile(
            relation, callback=callback, operator=operator, count=count
        )
        return self._add(expression, boolean)

    def or_has(self, relation: str, operator: str = ">=", count: int = 1) -> ModelQueryBuilder:
        return self.has(relation, operator, count, boolean="OR")

    def where_has(self, relation: str, callback: Optional[Callable[[Any], Any]] = None,
                  operator: str = ">=", count: int = 1) -> ModelQueryBuilder:
        return self.has(relation, operator, count, callback=callback)

    def or_where_has(self, relation: str, callback: Optional[Callable[[Any], Any]] = None,
                     operator: str = ">=", count: int = 1) -> ModelQueryBuilder:
        return self.has(relation, operator, count, boolean="OR", callback=callback)

    def doesnt_have(self, relation: str, boolean: str = "AND",
                    callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        from .existence import ExistenceCompiler
        expression = ExistenceCompiler(self).compile(relation, callback=callback, negate=True)
        return self._add(expression, boolean)

    def or_doesnt_have(self, relation: str) -> ModelQueryBuilder:
        return self.doesnt_have(relation, boolean="OR")

    def where_doesnt_have(self, relation: str,
                          callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        return self.doesnt_have(relation, callback=callback)

    def or_where_doesnt_have(self, relation: str,
                             callback: Optional[Callable[[Any], Any]] = None) -> ModelQueryBuilder:
        return self.doesnt_have(relation, boolean="OR", callback=callback)

    def with_count(self, relation: str, callback: Optional[Callable[[Any], Any]] = None,
                   alias: Optional[str] = None) -> ModelQueryBuilder:
        """Select the number of related rows as ``<relation>_count`` (stored in row extras)."""
        from .existence import ExistenceCompiler
        subquery = ExistenceCompiler(self).segment(relation, callback)
        count = SubqueryExpression(statement=subquery.to_statement().count_statement(alias=None))
        columns = list(self.columns) or [self.table.all_columns]
        return self.clone_with(columns=columns + [count.label(alias or f"{relation}_count")])

    # compilation

    def base_statement(self) -> Statement:
        return Statement(table=self.table)

    def shape_where(self, statement: Statement, expression: Expression) -> Statement:
        return statement.where(expression, stage=QueryStage.SHAPE)

    def _shape(self, action: str) -> Statement:
        return self.base_statement()

    def _extra_columns(self) -> list[Expression]:
        return []

    def _applies_global_scopes(self, action: str) -> bool:
        return True

    def to_statement(self, action: str = "select") -> Statement:
        """Compile this builder, scopes included, into a Statement.

        ``action`` is ``select``, ``update`` or ``delete``; relation builders
        use different shapes for writes.
        """
        builder = self._with_global_scopes() if self._applies_global_scopes(action) else self
        statement = builder._shape(action)
        columns = list(builder.columns) or list(statement.columns)
        if action == "select":
            extra = builder._extra_columns()
            if extra and not columns:
                columns = [builder.table.all_columns]
            columns += extra
        clauses = compose_clauses(statement.clauses + builder.clauses)
        return statement.clone_with(
            columns=columns,
            joins=statement.joins + builder.joins,
            clauses=clauses,
            group_by_expressions=statement.group_by_expressions + builder.group_by_expressions,
            order_by_expressions=statement.order_by_expressions + builder.order_by_expressions,
            limit_value=builder.limit_value,
            offset_value=builder.offset_value,
        )

    def to_sql(self) -> tuple[str, tuple[Any, ...]]:
        """SQL text (``?`` placeholders) and bound values of this query."""
        statement = self.to_statement().clone_with(dialect=self.dialect)
        return statement.sql, statement.values

    @property
    def sql(self) -> str:
        return self.to_sql()[0]

    # execution

    def _execute(self, statement: Statement) -> list[dict[str, Any]]:
        client = self.get_client()
        statement = statement.clone_with(dialect=client.dialect)
        return client.execute(statement.sql, statement.values)

    def all(self) -> list:
        """Run the query and return model instances, with requested relations preloaded."""
        client = self.get_client()
        rows = self._execute(self.to_statement())
        instances = self.model.from_rows(rows, client)
        self._preload_into(instances, client)
        return instances

    def _preload_into(self, instances: list, client) -> None:
        if not self.preloads:
            return
        from .preloader import Preloader
        preloader = Preloader(self.model, client)
        for request in self.preloads:
            preloader.preload(request.name, request.callback)
        preloader.process(instances)

    def __iter__(self) -> Iterator:
        return iter(self.all())

    def first(self):
        rows = self.limit(1).all()
        return rows[0] if rows else None

    def first_or_fail(self):
        row = self.first()
        if row is None:
            raise RowNotFoundError(f"No {self.model.__name__} row matches the query")
        return row

    def count(self) -> int:
        rows = self._execute(self.to_statement().count_statement())
        return int(rows[0]["total"]) if rows else 0

    def exists(self) -> bool:
        return self.count() > 0

    def _update_data(self, values: dict[str, Any]) -> dict[str, Any]:
        descriptor = self.descriptor
        data = {}
        for name, value in values.items():
            column = descriptor.columns.get(name)
            if column is None:
                data[name] = value
            elif isinstance(value, Expression):
                data[column.column_name] = value
            else:
                data[column.column_name] = column.serialize(value)
        return data

    def update(self, **values: Any) -> int:
        """Update every matching row; returns the number of affected rows."""
        data = self._update_data(values)
        if not data:
            return 0
        sql, bound = self.to_statement("update").compile_update(data)
        return self.get_client().execute_write(sql, bound)

    def delete(self) -> int:
        """Delete every matching row (soft delete for models with soft deletes)."""
        from ..model.soft_deletes import SoftDeletes
        capability = self.descriptor.capability(SoftDeletes)
        if capability is not None:
            return self.update(**{capability.column: RawExpression(text="CURRENT_TIMESTAMP")})
        return self.force_delete()

    def force_delete(self) -> int:
        sql, bound = self.to_statement("delete").compile_delete()
        return self.get_client().execute_write(sql, bound)

    def _check_paginate(self) -> None:
        pass

    def paginate(self, page: int = 1, per_page: int = 20, base_url: str = "/"):
        """Return one page of rows plus the total count, as a SimplePaginator."""
        from .paginator import SimplePaginator
        self._check_paginate()
        total = self.count()
        rows = self.for_page(page, per_page).all()
        return SimplePaginator(rows=rows, total=total, per_page=per_page,
                               current_page=page, base_url=base_url)
