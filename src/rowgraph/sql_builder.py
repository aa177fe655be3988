# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Select shape management and SQL statement builder for RowGraph.
"""

from __future__ import annotations

import copy
import datetime
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import ErrorMessages, NamingConventions, SQLConstants
from .exceptions import ConfigurationError
from .literal import Literal

_AND_GROUP = ")" + SQLConstants.AND + "("
_LIST_FIELDS = ("select", "where", "or_where", "where_params", "or_where_params", "group_by", "having", "order_by")


@dataclass
class SelectShape:
    """Immutable description of a SELECT against one table; derive with copy()."""
    select: Optional[List[str]] = None
    where: List[str] = field(default_factory=list)
    or_where: List[str] = field(default_factory=list)
    where_params: List[Any] = field(default_factory=list)
    or_where_params: List[Any] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)
    having: List[str] = field(default_factory=list)
    order_by: List[str] = field(default_factory=list)
    limit_count: Optional[int] = None
    limit_offset: Optional[int] = None

    def copy(self, **kwargs) -> SelectShape:
        """Derive a shape with some parts replaced; list parts are never shared."""
        # @@ STEP 1: Start from a shallow copy with fresh lists
        new_shape = copy.copy(self)
        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(new_shape, name, list(value))

        # @@ STEP 2: Apply replacements to known parts only
        parts = {f.name for f in fields(self)}
        for key, value in kwargs.items():
            if key not in parts:
                raise ValueError(f"SelectShape has no part '{key}' (parts: {', '.join(sorted(parts))})")
            if key in _LIST_FIELDS and value is not None:
                value = list(value)
            setattr(new_shape, key, value)

        return new_shape

    @property
    def params(self) -> List[Any]:
        """Bound parameters in the order their placeholders appear in the statement."""
        return [*self.where_params, *self.or_where_params]

    def definition(self, table: str, scope: Sequence[str] = ()) -> Dict[str, Any]:
        """Everything that changes the generated statement, used as the eager-load cache key."""
        return {
            "table": table,
            "select": self.select,
            "where": [*self.where, *scope],
            "or_where": self.or_where,
            "params": self.params,
            "group_by": self.group_by,
            "having": self.having,
            "order_by": self.order_by,
            "limit_count": self.limit_count,
            "limit_offset": self.limit_offset,
        }


class SqlBuilder:
    """
    Builds SQL text and quotes identifiers and values.

    Values in conditions built by is_condition() are inlined with quote();
    raw conditions keep ``?`` placeholders and travel with their params.
    """

    def __init__(
        self,
        delimiter: Callable[[], Optional[str]],
        rewrite_table: Callable[[str], str],
    ):
        self._delimiter = delimiter
        self._rewrite_table = rewrite_table

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote_identifier(self, identifier: str) -> str:
        delimiter = self._delimiter()

        if not delimiter:
            return identifier

        parts = identifier.split(NamingConventions.IDENTIFIER_SEPARATOR)
        return NamingConventions.IDENTIFIER_SEPARATOR.join(
            delimiter + part.replace(delimiter, delimiter + delimiter) + delimiter
            for part in parts
        )

    @staticmethod
    def format(value: Any) -> Any:
        """Format a value for SQL, e.g. datetime objects."""
        if isinstance(value, datetime.datetime):
            return value.strftime(SQLConstants.DATETIME_FORMAT)
        if isinstance(value, datetime.date):
            return value.strftime(SQLConstants.DATE_FORMAT)
        return value

    def quote(self, value: Any) -> str:
        value = self.format(value)

        if value is None:
            return SQLConstants.NULL
        if isinstance(value, Literal):
            return value.value
        # bool before int, since bool is an int subclass
        if value is True:
            return SQLConstants.TRUE
        if value is False:
            return SQLConstants.FALSE
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return repr(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return "X'" + bytes(value).hex() + "'"

        return "'" + str(value).replace("'", "''") + "'"

    def is_condition(self, column: str, value: Any, negate: bool = False) -> str:
        """
        Build a condition expressing "column is value", or "column is in value" for lists.

        Handles None and Literal values. An empty list never matches
        (or always matches when negated).
        """
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
        else:
            values = [value]

        column = self.quote_identifier(column)

        if len(values) == 1:
            single = values[0]
            if single is None:
                return column + (SQLConstants.IS_NOT_NULL if negate else SQLConstants.IS_NULL)
            return column + (SQLConstants.NEQ if negate else SQLConstants.EQ) + self.quote(single)

        if not values:
            return SQLConstants.ALWAYS_TRUE if negate else SQLConstants.ALWAYS_FALSE

        quoted = [self.quote(v) for v in values if v is not None]
        has_null = len(quoted) != len(values)

        clauses = []
        if quoted:
            operator = SQLConstants.NOT_IN if negate else SQLConstants.IN
            clauses.append(column + operator + "( " + SQLConstants.LIST_SEPARATOR.join(quoted) + " )")
        if has_null:
            clauses.append(column + (SQLConstants.IS_NOT_NULL if negate else SQLConstants.IS_NULL))

        return (SQLConstants.AND if negate else SQLConstants.OR).join(clauses)

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    @staticmethod
    def condition_list(
        where: Sequence[str],
        or_where: Sequence[str] = (),
        scope: Sequence[str] = (),
    ) -> List[str]:
        """
        Flatten AND conditions, OR conditions and outer scope into a list of AND-ed conditions.

        OR conditions are alternatives to the whole AND group; scope conditions
        always apply on top.
        """
        if not or_where:
            return [*where, *scope]

        alternatives = []
        if where:
            alternatives.append(SQLConstants.AND.join(f"({c})" for c in where))
        alternatives.extend(or_where)

        grouped = SQLConstants.OR.join(f"({c})" for c in alternatives)
        return [grouped, *scope]

    @staticmethod
    def suffix(
        where: Sequence[str] = (),
        group_by: Sequence[str] = (),
        having: Sequence[str] = (),
        order_by: Sequence[str] = (),
        limit_count: Optional[int] = None,
        limit_offset: Optional[int] = None,
    ) -> str:
        """Return WHERE/GROUP BY/HAVING/ORDER BY/LIMIT suffix for statements."""
        suffix = ""

        if where:
            suffix += f" {SQLConstants.WHERE} (" + _AND_GROUP.join(where) + ")"

        if group_by:
            suffix += f" {SQLConstants.GROUP_BY} " + SQLConstants.LIST_SEPARATOR.join(group_by)

        if having:
            suffix += f" {SQLConstants.HAVING} (" + _AND_GROUP.join(having) + ")"

        if order_by:
            suffix += f" {SQLConstants.ORDER_BY} " + SQLConstants.LIST_SEPARATOR.join(order_by)

        if limit_count is not None:
            suffix += f" {SQLConstants.LIMIT} {int(limit_count)}"

            if limit_offset is not None:
                suffix += f" {SQLConstants.OFFSET} {int(limit_offset)}"

        return suffix

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        shape: SelectShape,
        scope: Sequence[str] = (),
        expr: Optional[str] = None,
    ) -> Tuple[str, List[Any]]:
        """Build a SELECT from a shape; ``expr`` replaces the select list (aggregates)."""
        if expr is not None:
            select_list = expr
        elif shape.select:
            select_list = SQLConstants.LIST_SEPARATOR.join(shape.select)
        else:
            select_list = SQLConstants.STAR

        query = f"{SQLConstants.SELECT} {select_list} {SQLConstants.FROM} "
        query += self.quote_identifier(self._rewrite_table(table))
        query += self.suffix(
            self.condition_list(shape.where, shape.or_where, scope),
            shape.group_by,
            shape.having,
            shape.order_by,
            shape.limit_count,
            shape.limit_offset,
        )

        return query, shape.params

    def insert_head(self, table: str, columns: Sequence[str]) -> str:
        """Build head of INSERT statement (without values)."""
        quoted_columns = SQLConstants.LIST_SEPARATOR.join(self.quote_identifier(c) for c in columns)
        query = f"{SQLConstants.INSERT_INTO} " + self.quote_identifier(self._rewrite_table(table))
        return query + f" ( {quoted_columns} ) {SQLConstants.VALUES} "

    def insert_defaults(self, table: str) -> str:
        """Build an INSERT of a row consisting of column defaults only."""
        query = f"{SQLConstants.INSERT_INTO} " + self.quote_identifier(self._rewrite_table(table))
        return query + f" {SQLConstants.DEFAULT_VALUES}"

    @staticmethod
    def columns_of(rows: Iterable[Mapping[str, Any]]) -> List[str]:
        """All columns used in the given rows, in first-seen order."""
        columns: Dict[str, bool] = {}
        for row in rows:
            for column in row:
                columns[column] = True
        return list(columns)

    def value_lists(self, rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> List[str]:
        """Build lists of quoted values for INSERT."""
        return [
            "( " + SQLConstants.LIST_SEPARATOR.join(self.quote(row.get(c)) for c in columns) + " )"
            for row in rows
        ]

    def placeholders(self, count: int) -> str:
        return "( " + SQLConstants.LIST_SEPARATOR.join([SQLConstants.PLACEHOLDER] * count) + " )"

    def update(self, table: str, data: Mapping[str, Any], where: Sequence[str]) -> str:
        assignments = SQLConstants.LIST_SEPARATOR.join(
            self.quote_identifier(column) + SQLConstants.EQ + self.quote(value)
            for column, value in data.items()
        )
        query = f"{SQLConstants.UPDATE} " + self.quote_identifier(self._rewrite_table(table))
        return query + f" {SQLConstants.SET} {assignments}" + self.suffix(where)

    def delete(self, table: str, where: Sequence[str]) -> str:
        query = f"{SQLConstants.DELETE_FROM} " + self.quote_identifier(self._rewrite_table(table))
        return query + self.suffix(where)

    @staticmethod
    def order_term(quoted_column: str, direction: str) -> str:
        normalized = direction.upper()
        if normalized not in (SQLConstants.ASC, SQLConstants.DESC):
            raise ConfigurationError(ErrorMessages.INVALID_DIRECTION.format(direction=direction))
        return f"{quoted_column} {normalized}"


__all__ = ["SelectShape", "SqlBuilder"]
