"""Dynamic SQL query building from structured filters, and execution against SQLite."""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass, field, fields, is_dataclass
from enum import IntEnum
from typing import Any, TypeVar

from previous.basic import to_string
from previous.config import get_config
from previous.filters import Filter

M = TypeVar("M")

_COLUMN_RE = re.compile(r"[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)*", re.ASCII)


class Operator(IntEnum):
    """Comparison used by a WHERE filter."""

    EQ = 0
    NE = 1
    GT = 2
    LT = 3
    GE = 4
    LE = 5
    LIKE = 6
    BETWEEN = 7


_OPERATOR_SQL = {
    Operator.EQ: "= ",
    Operator.NE: "<> ",
    Operator.GT: "> ",
    Operator.LT: "< ",
    Operator.GE: ">= ",
    Operator.LE: "<= ",
    Operator.LIKE: "LIKE ",
    Operator.BETWEEN: "BETWEEN ? AND ? ",
}


class QueryError(ValueError):
    """A query could not be built from the given builder."""


@dataclass
class QueryBetween:
    """The two bounds of a BETWEEN filter."""

    first: Any = None
    second: Any = None


@dataclass
class QueryFilter:
    """One WHERE condition; ``unsafe`` skips column-name validation."""

    column: str = ""
    operator: Operator = Operator.EQ
    parameter: Any = None
    subquery: QueryBuilder | None = None
    unsafe: bool = False


@dataclass
class QuerySetter:
    """A column assignment for INSERT and UPDATE, from a value or a SELECT subquery."""

    column: str = ""
    parameter: Any = None
    subquery: QueryBuilder | None = None


def _db_columns(model: Any) -> set[str]:
    if not is_dataclass(model):
        return set()
    return {f.metadata["db"] for f in fields(model) if "db" in f.metadata}


def validate_column_name(model: Any, name: str) -> bool:
    """Whether ``name`` is a plain identifier that ``model`` declares as a ``db`` column."""
    if _COLUMN_RE.fullmatch(name) is None:
        return False
    return name in _db_columns(model)


def wildcard(value: Any) -> str:
    """Wrap a search value in SQL wildcards; strings are passed through unchanged."""
    if isinstance(value, str):
        return value
    return f"%{to_string(value)}%"


@dataclass
class QueryBuilder:
    """The parts of a SELECT, INSERT, UPDATE or DELETE statement built on ``base_sql``."""

    base_sql: str = ""
    subquery: bool = False
    single: bool = False
    pagination_enabled: bool = False
    current_page: int = 0
    max_items_per_page: int = 0
    order_by: list[str] = field(default_factory=list)
    order_descending: bool = False
    group_by: list[str] = field(default_factory=list)
    where: list[QueryFilter] = field(default_factory=list)
    setters: list[QuerySetter] = field(default_factory=list)

    def build_where(self, model: Any) -> tuple[str, list[Any]]:
        """The WHERE clause and its parameters; empty when there are no filters."""
        if not self.where:
            return "", []

        parts = [" "]
        params: list[Any] = []
        for i, condition in enumerate(self.where):
            if not condition.unsafe and not validate_column_name(model, condition.column):
                raise QueryError(
                    "invalid column name provided in WHERE clause. column: " + condition.column
                )
            parts.append("WHERE " if i == 0 else "AND ")
            parts.append(condition.column + " ")
            parts.append(_OPERATOR_SQL.get(condition.operator, ""))
            if condition.subquery is None and condition.operator != Operator.BETWEEN:
                parts.append("? ")

            if condition.parameter is None:
                raise QueryError(
                    "WHERE clause not nil, but parameters nil for column: " + condition.column
                )

            is_between = isinstance(condition.parameter, QueryBetween)
            if condition.operator == Operator.BETWEEN:
                if not is_between:
                    raise QueryError(
                        "Filter parameter must be of type `QueryBetween` when using the "
                        "BETWEEN operator. Column: " + condition.column
                    )
                params.extend((condition.parameter.first, condition.parameter.second))
            else:
                if is_between:
                    raise QueryError(
                        "Attempt to use a between filter for a non between query. Column: "
                        + condition.column
                    )
                if condition.subquery is not None:
                    sub_sql, sub_params = condition.subquery.build_select(model)
                    parts.append(sub_sql + " ")
                    params.extend(sub_params)
                else:
                    params.append(condition.parameter)

        return "".join(parts), params

    def _column_list(self, model: Any, names: list[str], clause: str) -> str:
        for name in names:
            if not validate_column_name(model, name):
                raise QueryError(f"invalid name for {clause} clause")
        return ", ".join(names) + " "

    def build_select(self, model: Any) -> tuple[str, list[Any]]:
        """A SELECT statement with filters, grouping, ordering and paging."""
        where_sql, params = self.build_where(model)
        sql = self.base_sql + " " + where_sql

        if self.group_by:
            sql += "GROUP BY " + self._column_list(model, self.group_by, "groupby")

        if self.order_by:
            sql += "ORDER BY " + self._column_list(model, self.order_by, "orderby")
            sql += "DESC " if self.order_descending else "ASC "

        if self.single:
            sql += "LIMIT 1"
        elif self.pagination_enabled:
            if self.current_page <= 0:
                self.current_page = 1
            if self.max_items_per_page <= 0:
                self.max_items_per_page = 10
            offset = (self.current_page - 1) * self.max_items_per_page
            sql += f"LIMIT {self.max_items_per_page} OFFSET {offset}"

        if self.subquery:
            sql = "(" + sql + ")"
        return sql, params

    def _setter_value(self, model: Any, setter: QuerySetter, params: list[Any]) -> str:
        if setter.subquery is not None:
            sub_sql, sub_params = setter.subquery.build_select(model)
            params.extend(sub_params)
            return sub_sql
        params.append(setter.parameter)
        return "?"

    def build_insert(self, model: Any) -> tuple[str, list[Any]]:
        """An INSERT statement from the setters."""
        if not self.setters:
            raise QueryError("one or more setters contains invalid column name")
        params: list[Any] = []
        columns = ",".join(setter.column for setter in self.setters)
        values = ",".join(self._setter_value(model, setter, params) for setter in self.setters)
        return f"{self.base_sql} ({columns}) VALUES ({values}) ", params

    def build_update(self, model: Any) -> tuple[str, list[Any]]:
        """An UPDATE statement from the setters and filters."""
        params: list[Any] = []
        sql = self.base_sql + " "
        assignments = [
            f"{setter.column} = {self._setter_value(model, setter, params)}"
            for setter in self.setters
        ]
        if assignments:
            sql += "SET " + ", ".join(assignments) + " "
        where_sql, where_params = self.build_where(model)
        params.extend(where_params)
        return sql + where_sql, params

    def build_delete(self, model: Any) -> tuple[str, list[Any]]:
        """A DELETE statement from the filters."""
        where_sql, params = self.build_where(model)
        return self.base_sql + where_sql, params

    def apply_filter(self, query_filter: Filter) -> None:
        """Take paging and ordering from a user filter; search terms are not applied."""
        self.pagination_enabled = query_filter.pagination.enabled
        self.current_page = query_filter.pagination.current_page
        self.max_items_per_page = query_filter.pagination.max_items_per_page
        if query_filter.order_by:
            self.order_by = [query_filter.order_by]
            self.order_descending = query_filter.order_descending

    def apply_search(self, query_filter: Filter) -> None:
        """Add a LIKE condition for each search term of a user filter."""
        for column, value in query_filter.search.items():
            self.where.append(
                QueryFilter(column=column, operator=Operator.LIKE, parameter=wildcard(value))
            )


def _to_model(model: type[M], names: list[str], row: tuple) -> M:
    mapping = {f.metadata["db"]: f.name for f in fields(model) if "db" in f.metadata}
    values = {mapping[name]: value for name, value in zip(names, row) if name in mapping}
    return model(**values)


def select(builder: QueryBuilder, connection: sqlite3.Connection, model: type[M], *args: Any) -> list[M]:
    """Run a SELECT and map every row onto ``model``; extra ``args`` are appended as parameters."""
    sql, params = builder.build_select(model)
    cursor = connection.execute(sql, [*params, *args])
    names = [column[0] for column in cursor.description or ()]
    return [_to_model(model, names, row) for row in cursor.fetchall()]


def get(builder: QueryBuilder, connection: sqlite3.Connection, model: type[M], *args: Any) -> M:
    """Run a SELECT for a single row; raises LookupError when there is none."""
    builder.single = True
    sql, params = builder.build_select(model)
    cursor = connection.execute(sql, [*params, *args])
    row = cursor.fetchone()
    if row is None:
        raise LookupError("sql: no rows in result set")
    names = [column[0] for column in cursor.description or ()]
    return _to_model(model, names, row)


def insert(builder: QueryBuilder, connection: sqlite3.Connection, model: Any, *args: Any) -> sqlite3.Cursor:
    """Run an INSERT built from the setters."""
    sql, params = builder.build_insert(model)
    return connection.execute(sql, [*params, *args])


def update(builder: QueryBuilder, connection: sqlite3.Connection, model: Any, *args: Any) -> sqlite3.Cursor:
    """Run an UPDATE built from the setters and filters."""
    sql, params = builder.build_update(model)
    return connection.execute(sql, [*params, *args])


def delete(builder: QueryBuilder, connection: sqlite3.Connection, model: Any, *args: Any) -> sqlite3.Cursor:
    """Run a DELETE built from the filters."""
    sql, params = builder.build_delete(model)
    return connection.execute(sql, [*params, *args])


def connect(connection_string: str | None = None) -> sqlite3.Connection:
    """Open the SQLite database, by default the one named in the configuration."""
    target = get_config().db_connection_string if connection_string is None else connection_string
    connection = sqlite3.connect(target, uri=target.startswith("file:"))
    connection.execute("SELECT 1").fetchone()
    return connection