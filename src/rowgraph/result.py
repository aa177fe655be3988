# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Result class with method chaining and eager-loading associations for RowGraph.

A Result describes a SELECT against one table. Results created relative to a
Row or another Result are associations: they are executed once per distinct
shape for the whole tree, restricted to the keys of all sibling parents, and
then filtered locally for the specific parent that asked.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .constants import (
    AssociationKind, ErrorMessages, LoggingConstants, NamingConventions, OrderPosition, ResultPart, SQLConstants
)
from .conventions import PrimaryKey, split_association_name
from .database import Database
from .exceptions import ConfigurationError, IdentityError, PagingError
from .row import Row
from .sql_builder import SelectShape

logger = logging.getLogger(__name__)

_COLUMN_SHORTCUT = re.compile(NamingConventions.COLUMN_SHORTCUT_PATTERN, re.IGNORECASE)


class Result:
    """
    Lazy, memoized SELECT over one table, optionally bound to a parent.

    Every builder method returns a new Result; execution state is never carried
    over to derived results.
    """

    def __init__(self, parent: Union["Database", "Result", Row], name: str):
        """
        Initialize a result. Use Database.create_result() or table() instead.

        Args:
            parent: Database for a root result, a Result or Row for an association
            name: Table or association name; a ``List`` suffix names a collection
        """
        self._parent: Optional[Union[Result, Row]] = None
        self._kind = AssociationKind.ROOT
        self._key: Optional[str] = None
        self._parent_key: Optional[str] = None

        if isinstance(parent, (Result, Row)):
            self._parent = parent
            self._db = parent.get_database()

            name, is_collection = split_association_name(name)
            self._table = self._db.get_alias(name)

            if is_collection:
                self._kind = AssociationKind.COLLECTION
                self._key = self._db.get_back_reference(parent.get_table(), name)
                self._parent_key = self._db.get_primary(parent.get_table())
            else:
                self._kind = AssociationKind.SINGLE
                self._key = self._db.get_primary(self._table)
                self._parent_key = self._db.get_reference(parent.get_table(), name)
        elif isinstance(parent, Database):
            self._db = parent
            self._table = self._db.get_alias(name)
        else:
            raise ConfigurationError(ErrorMessages.INVALID_PARENT.format(type_name=type(parent).__name__))

        self._state = SelectShape()
        self._rows: Optional[List[Row]] = None
        self._global_rows: Optional[List[Row]] = None
        self._cache: Dict[str, List[Row]] = {}

    def _copy_with_state(self, **kwargs) -> Result:
        """Create a new, unexecuted Result with updated shape."""
        new_result = Result.__new__(Result)
        new_result._parent = self._parent
        new_result._kind = self._kind
        new_result._key = self._key
        new_result._parent_key = self._parent_key
        new_result._db = self._db
        new_result._table = self._table
        new_result._state = self._state.copy(**kwargs)
        new_result._rows = None
        new_result._global_rows = None
        new_result._cache = {}
        return new_result

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def referenced(self, name: str, where: Union[str, Mapping[str, Any], None] = None, *params: Any) -> Result:
        """Get referenced row(s) by name. Suffix ``List`` gets many rows."""
        result = self._db.create_result(self, name)
        if where is not None:
            result = result.where(where, *params)
        return result

    def via(self, key: str) -> Result:
        """Create a result joined through a different key column."""
        if self._parent is None:
            raise ConfigurationError(ErrorMessages.VIA_ON_ROOT.format(table=self._table))

        result = self._copy_with_state()
        if result._kind is AssociationKind.SINGLE:
            result._parent_key = key
        else:
            result._key = key
        return result

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _scope(self) -> List[str]:
        if self._parent is None:
            return []
        # union of all sibling parents' keys, so one statement serves every parent
        return [self._db.is_(self._key, self._parent.get_global_keys(self._parent_key))]

    def execute(self) -> Result:
        """Execute the select defined by this result; no-op if already executed."""
        if self._rows is not None:
            return self

        scope = self._scope()
        definition = self.get_definition(scope)
        root = self.get_root()

        cached = root.get_cache(definition)
        if cached is None:
            logger.debug(LoggingConstants.CACHE_MISS, self._table)
            cached = []
            for data in self._db.select(self._table, self._state, scope):
                row = self.create_row(data)
                if row.get_id() is not None:
                    row.set_clean()
                else:
                    # aggregated or projected rows have no identity to sync against
                    row.reset_modified()
                cached.append(row)
            root.set_cache(definition, cached)
        else:
            logger.debug(LoggingConstants.CACHE_HIT, self._table)

        self._global_rows = cached

        if self._parent is None:
            self._rows = cached
        else:
            keys = self._parent.get_local_keys(self._parent_key)
            self._rows = [row for row in cached if row[self._key] in keys]

        return self

    def create_row(self, data: Optional[Mapping[str, Any]] = None) -> Row:
        """Create a row bound to this result."""
        return self._db.create_row(self._table, data, self)

    def fetch(self) -> Optional[Row]:
        """First local row, or None."""
        self.execute()
        return self._rows[0] if self._rows else None

    def fetch_all(self) -> List[Row]:
        self.execute()
        return list(self._rows)

    def row_count(self) -> int:
        self.execute()
        return len(self._rows)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_database(self) -> "Database":
        return self._db

    def get_root(self) -> Union[Result, Row]:
        """The node owning the eager-load cache for this tree."""
        if self._parent is None:
            return self
        return self._parent.get_root()

    def get_parent(self) -> Optional[Union[Result, Row]]:
        return self._parent

    def get_table(self) -> str:
        return self._table

    def is_single(self) -> Optional[bool]:
        """True for single associations, False for collections, None for root results."""
        if self._kind is AssociationKind.ROOT:
            return None
        return self._kind is AssociationKind.SINGLE

    def get_definition(self, scope: Optional[Sequence[str]] = None) -> str:
        """
        Fingerprint of everything that shapes the generated statement.

        Associations of the same shape under different parents of one tree share
        a fingerprint, because their parent scope is built from global keys.
        """
        if scope is None:
            scope = self._scope()
        return json.dumps(self._state.definition(self._table, scope), default=str)

    def get_local_keys(self, key: str) -> List[Any]:
        """Distinct non-null values of ``key`` in the local rows."""
        self.execute()
        return self._get_keys(self._rows, key)

    def get_global_keys(self, key: str) -> List[Any]:
        """Distinct non-null values of ``key`` in the global rows."""
        self.execute()
        return self._get_keys(self._global_rows, key)

    def _get_keys(self, rows: List[Row], key: str) -> List[Any]:
        if rows and not rows[0].has_property(key):
            raise IdentityError(ErrorMessages.MISSING_KEY_COLUMN.format(key=key, table=self._table))

        keys: Dict[Any, bool] = {}
        for row in rows:
            value = row[key]
            if value is not None:
                keys[value] = True
        return list(keys)

    def get_cache(self, key: str) -> Optional[List[Row]]:
        return self._cache.get(key)

    def set_cache(self, key: str, value: List[Row]) -> Result:
        self._cache[key] = value
        return self

    # ------------------------------------------------------------------
    # Manipulation
    # ------------------------------------------------------------------

    def insert(self, rows: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]], method: Optional[str] = None) -> Any:
        return self._db.insert(self._table, rows, method)

    def update(self, data: Mapping[str, Any]) -> Any:
        """
        Update the rows of this result.

        Associations and limited results are narrowed to their local rows'
        primary keys first.
        """
        if self._parent is not None or self._state.limit_count is not None:
            return self.primary_result().update(data)

        where = self._db.condition_list(self._state.where, self._state.or_where)
        return self._db.update(self._table, data, where, self._state.params)

    def delete(self) -> Any:
        """Delete the rows of this result, narrowed like update()."""
        if self._parent is not None or self._state.limit_count is not None:
            return self.primary_result().delete()

        where = self._db.condition_list(self._state.where, self._state.or_where)
        return self._db.delete(self._table, where, self._state.params)

    def primary_result(self) -> Result:
        """A root result matching exactly the local rows of this result by primary key."""
        result = self._db.table(self._table)
        primary: PrimaryKey = self._db.get_primary(self._table)

        if isinstance(primary, list):
            self.execute()
            alternatives = []
            for row in self._rows:
                conditions = [self._db.is_(column, row[column]) for column in primary]
                alternatives.append("( " + SQLConstants.AND.join(conditions) + " )")
            if not alternatives:
                return result.where(SQLConstants.ALWAYS_FALSE)
            return result.where(SQLConstants.OR.join(alternatives))

        return result.where(primary, self.get_local_keys(primary))

    # ------------------------------------------------------------------
    # Select shape
    # ------------------------------------------------------------------

    def select(self, *exprs: str) -> Result:
        """Add expressions to the select list."""
        return self._copy_with_state(select=[*(self._state.select or []), *exprs])

    def expr(self, *exprs: str) -> Result:
        """Alias for select()."""
        return self.select(*exprs)

    def _condition(self, condition: str, params: Sequence[Any]) -> Tuple[str, List[Any]]:
        # "column is (in) value" shortcut, value quoted into the condition
        if _COLUMN_SHORTCUT.match(condition):
            if len(params) == 1:
                value = params[0]
            else:
                value = list(params)
            return self._db.is_(condition, value), []

        if len(params) == 1 and isinstance(params[0], (list, tuple)):
            params = params[0]
        return condition, list(params)

    def where(self, condition: Union[str, Mapping[str, Any]], *params: Any) -> Result:
        """
        Add an AND condition.

        Accepts a column -> value mapping, a bare column with a value or list of
        values, or raw SQL with ``?`` placeholders and their params.
        """
        if isinstance(condition, Mapping):
            result = self
            for column, value in condition.items():
                result = result.where(column, value)
            return result

        sql, bound = self._condition(condition, params)
        return self._copy_with_state(
            where=[*self._state.where, sql],
            where_params=[*self._state.where_params, *bound],
        )

    def or_where(self, condition: Union[str, Mapping[str, Any]], *params: Any) -> Result:
        """Add an OR condition, an alternative to the whole AND group."""
        if isinstance(condition, Mapping):
            result = self
            for column, value in condition.items():
                result = result.or_where(column, value)
            return result

        sql, bound = self._condition(condition, params)
        return self._copy_with_state(
            or_where=[*self._state.or_where, sql],
            or_where_params=[*self._state.or_where_params, *bound],
        )

    def where_not(self, column: Union[str, Mapping[str, Any]], value: Any = None) -> Result:
        """Add an AND "column is not (in) value" condition."""
        if isinstance(column, Mapping):
            result = self
            for c, v in column.items():
                result = result.where_not(c, v)
            return result

        return self._copy_with_state(where=[*self._state.where, self._db.is_not(column, value)])

    def or_where_not(self, column: Union[str, Mapping[str, Any]], value: Any = None) -> Result:
        if isinstance(column, Mapping):
            result = self
            for c, v in column.items():
                result = result.or_where_not(c, v)
            return result

        return self._copy_with_state(or_where=[*self._state.or_where, self._db.is_not(column, value)])

    def group_by(self, column: str) -> Result:
        return self._copy_with_state(group_by=[*self._state.group_by, self._db.quote_identifier(column)])

    def having(self, condition: str) -> Result:
        return self._copy_with_state(having=[*self._state.having, condition])

    def order_by(
        self,
        column: str,
        direction: Union[str, bool] = SQLConstants.ASC,
        position: Union[str, OrderPosition] = OrderPosition.END,
    ) -> Result:
        """
        Add an ORDER BY term.

        Args:
            column: Column name, or a raw expression when ``direction`` is True
            direction: ASC or DESC
            position: ``start`` prepends the term, ``end`` appends it
        """
        try:
            position = OrderPosition(position)
        except ValueError as e:
            raise ConfigurationError(ErrorMessages.INVALID_POSITION.format(position=position)) from e

        term = column if direction is True else self._db.order_term(column, direction)

        if position is OrderPosition.START:
            order_by = [term, *self._state.order_by]
        else:
            order_by = [*self._state.order_by, term]
        return self._copy_with_state(order_by=order_by)

    def limit(self, count: int, offset: Optional[int] = None) -> Result:
        if self._parent is not None:
            raise ConfigurationError(ErrorMessages.LIMIT_ON_ASSOCIATION.format(table=self._table))
        return self._copy_with_state(limit_count=count, limit_offset=offset)

    def paged(self, page_size: int, page: int) -> Result:
        """Limit to page ``page`` (starting at 1) of size ``page_size``."""
        if page < 1:
            raise PagingError(ErrorMessages.PAGE_BELOW_ONE.format(page=page))
        return self.limit(page_size, (page - 1) * page_size)

    def remove_part(self, name: Union[str, ResultPart]) -> Result:
        """Derive a result with one shape part reset."""
        try:
            part = ResultPart(name)
        except ValueError as e:
            raise ConfigurationError(ErrorMessages.INVALID_PART.format(part=name)) from e

        if part is ResultPart.PARAMS:
            return self._copy_with_state(where_params=[], or_where_params=[])
        if part in (ResultPart.LIMIT_COUNT, ResultPart.LIMIT_OFFSET):
            return self._copy_with_state(**{part.value: None})
        return self._copy_with_state(**{part.value: []})

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count(self, expr: str = SQLConstants.STAR) -> int:
        return int(self.aggregate(f"{SQLConstants.COUNT}({expr})") or 0)

    def min(self, expr: str) -> Any:
        return self.aggregate(f"{SQLConstants.MIN}({expr})")

    def max(self, expr: str) -> Any:
        return self.aggregate(f"{SQLConstants.MAX}({expr})")

    def sum(self, expr: str) -> Any:
        return self.aggregate(f"{SQLConstants.SUM}({expr})")

    def aggregate(self, function: str) -> Any:
        """Execute an aggregate expression over this result and return its value; bypasses the row cache."""
        if self._parent is not None:
            raise ConfigurationError(ErrorMessages.AGGREGATE_ON_ASSOCIATION.format(table=self._table))

        rows = self._db.select(self._table, self._state, expr=function)
        for row in rows:
            for value in row.values():
                return value
        return None

    # ------------------------------------------------------------------
    # Python protocols
    # ------------------------------------------------------------------

    def to_list(self) -> List[Dict[str, Any]]:
        """JSON-ready list of the local rows."""
        return [row.to_dict() for row in self.fetch_all()]

    def __iter__(self) -> Iterator[Row]:
        return iter(self.fetch_all())

    def __len__(self) -> int:
        return self.row_count()

    def __getattr__(self, name: str) -> Result:
        """Unknown public attributes are associations: ``posts.author`` is ``posts.referenced("author")``."""
        if name.startswith("_"):
            raise AttributeError(name)
        return self.referenced(name)

    def __repr__(self) -> str:
        return f"<Result({self._table}, {self._kind.value})>"


__all__ = ["Result"]
