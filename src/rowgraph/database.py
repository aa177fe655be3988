# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database wrapper for RowGraph with statement execution and transaction support.

This module provides the Database class that owns a DB-API 2.0 connection,
builds and executes SELECT/INSERT/UPDATE/DELETE statements, answers schema
convention questions through SchemaHints, and acts as the factory for Result
and Row objects. Connections must use the ``qmark`` parameter style
(``sqlite3`` does).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import (
    TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Union
)

from .constants import ErrorMessages, InsertMethod, LoggingConstants, SQLConstants
from .conventions import PrimaryKey, SchemaHints, split_association_name
from .exceptions import ConfigurationError
from .literal import Literal
from .sql_builder import SelectShape, SqlBuilder

if TYPE_CHECKING:
    from .result import Result
    from .row import Row

logger = logging.getLogger(__name__)

QueryCallback = Callable[[str, List[Any]], None]


class Database:
    """
    SQL engine over a DB-API connection.

    Usage:
        db = Database(sqlite3.connect("app.db"))
        db.set_primary("categorization", ["category_id", "post_id"])

        for post in db.table("post").order_by("date_published", "DESC"):
            author = post.referenced("author").fetch()
    """

    def __init__(
        self,
        connection: Any,
        hints: Optional[SchemaHints] = None,
        **hint_overrides: Any,
    ):
        """
        Initialize the database wrapper.

        Args:
            connection: DB-API 2.0 connection using the qmark paramstyle
            hints: Prepared schema conventions
            **hint_overrides: SchemaHints fields, applied on top of ``hints``
        """
        self._conn = connection
        if hints is None:
            hints = SchemaHints(**hint_overrides)
        elif hint_overrides:
            hints = SchemaHints(**{**hints.model_dump(), **hint_overrides})
        self.hints = hints

        self._rewrite: Optional[Callable[[str], str]] = None
        self._query_callback: Optional[QueryCallback] = None
        self._last_insert_cursor: Any = None
        self._builder = SqlBuilder(lambda: self.hints.identifier_delimiter, self.rewrite_table)

    # ------------------------------------------------------------------
    # Entry points and factories
    # ------------------------------------------------------------------

    def table(self, name: str, id: Any = None) -> Union["Result", "Row", None]:
        """
        Return a result for table ``name``.

        If ``id`` is given, fetch and return the row with that id instead. Compound
        ids are passed as a column -> value mapping.
        """
        name, _ = split_association_name(name)
        result = self.create_result(self, name)

        if id is None:
            return result

        if not isinstance(id, Mapping):
            id = {self.get_primary(self.get_alias(name)): id}

        return result.where(dict(id)).fetch()

    def create_row(
        self,
        name: str,
        properties: Optional[Mapping[str, Any]] = None,
        result: Optional["Result"] = None,
    ) -> "Row":
        """Create a row from given properties, optionally bound to the result that produced it."""
        from .row import Row

        return Row(self, name, properties, result)

    def create_result(self, parent: Union["Database", "Result", "Row"], name: str) -> "Result":
        """Create a result for table or association ``name`` bound to ``parent``."""
        from .result import Result

        return Result(parent, name)

    # ------------------------------------------------------------------
    # Driver interface
    # ------------------------------------------------------------------

    def query(self, query: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Execute an SQL statement directly and return the cursor."""
        params = list(params) if params else []
        self.on_query(query, params)

        cursor = self._conn.cursor()
        cursor.execute(query, params)
        return cursor

    @staticmethod
    def fetch_dicts(cursor: Any) -> List[Dict[str, Any]]:
        """Map fetched tuples to column -> value dictionaries."""
        if cursor.description is None:
            return []
        columns = [description[0] for description in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def last_insert_id(self, sequence: Optional[str] = None) -> Any:
        """
        Return the id generated by the last INSERT.

        Uses the cursor's ``lastrowid``; drivers that don't report it (PostgreSQL)
        are asked for ``currval`` of ``sequence``.
        """
        cursor = self._last_insert_cursor
        row_id = getattr(cursor, "lastrowid", None) if cursor is not None else None

        if row_id is None and sequence is not None:
            currval = self.query(SQLConstants.CURRVAL_QUERY.format(self.quote(sequence)))
            row = currval.fetchone()
            return row[0] if row else None

        return row_id

    def begin(self) -> None:
        """
        Start a transaction.

        Drivers in their default DB-API mode open a transaction implicitly on the
        first write; when the connection reports one in progress
        (``in_transaction``), no explicit BEGIN is sent and that transaction is
        the one later committed or rolled back.
        """
        if getattr(self._conn, "in_transaction", False):
            return
        self.query(SQLConstants.BEGIN)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Transactional scope around a series of operations.

        Commits when the block succeeds; rolls back and re-raises the original
        exception otherwise. A recursive save is not atomic by itself, wrap it here.
        """
        self.begin()
        try:
            yield self
        except Exception as e:
            logger.debug(LoggingConstants.TRANSACTION_ROLLBACK, type(e).__name__)
            self.rollback()
            raise
        else:
            self.commit()

    # ------------------------------------------------------------------
    # Schema hints
    # ------------------------------------------------------------------

    def get_primary(self, table: str) -> PrimaryKey:
        return self.hints.get_primary(table)

    def set_primary(self, table: str, key: PrimaryKey) -> "Database":
        self.hints.set_primary(table, key)
        return self

    def get_reference(self, table: str, name: str) -> str:
        return self.hints.get_reference(table, name)

    def set_reference(self, table: str, name: str, key: str) -> "Database":
        self.hints.set_reference(table, name, key)
        return self

    def get_back_reference(self, table: str, name: str) -> str:
        return self.hints.get_back_reference(table, name)

    def set_back_reference(self, table: str, name: str, key: str) -> "Database":
        self.hints.set_back_reference(table, name, key)
        return self

    def get_alias(self, alias: str) -> str:
        return self.hints.get_alias(alias)

    def set_alias(self, alias: str, table: str) -> "Database":
        self.hints.set_alias(alias, table)
        return self

    def is_required(self, table: str, column: str) -> bool:
        return self.hints.is_required(table, column)

    def get_required(self, table: str) -> List[str]:
        return self.hints.get_required(table)

    def set_required(self, table: str, column: str) -> "Database":
        self.hints.set_required(table, column)
        return self

    def get_sequence(self, table: str) -> Optional[str]:
        return self.hints.get_sequence(table, self.rewrite_table(table))

    def set_sequence(self, table: str, sequence: str) -> "Database":
        self.hints.set_sequence(table, sequence)
        return self

    def rewrite_table(self, table: str) -> str:
        if self._rewrite is not None:
            return self._rewrite(table)
        return table

    def set_rewrite(self, rewrite: Callable[[str], str]) -> "Database":
        """Set a table rewrite function, e.g. one adding a prefix."""
        self._rewrite = rewrite
        return self

    def get_identifier_delimiter(self) -> Optional[str]:
        return self.hints.identifier_delimiter

    def set_identifier_delimiter(self, delimiter: Optional[str]) -> "Database":
        """Backtick or double quote; None disables identifier quoting."""
        self.hints.identifier_delimiter = delimiter
        return self

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        shape: Optional[SelectShape] = None,
        scope: Sequence[str] = (),
        expr: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows from a table; ``scope`` conditions are AND-ed around the shape's conditions."""
        query, params = self._builder.select(table, shape or SelectShape(), scope, expr)
        return self.fetch_dicts(self.query(query, params))

    def insert(
        self,
        table: str,
        rows: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
        method: Optional[Union[str, InsertMethod]] = None,
    ) -> Any:
        """
        Insert one or more rows into a table.

        Methods:
            prepared: one statement executed per row with bound params; no literals
            batch:    a single statement with many value lists
            default:  one statement per row, literals allowed

        Rows without any column are inserted with ``DEFAULT VALUES``.

        Returns:
            The last cursor, or None when there was nothing to insert
        """
        self._last_insert_cursor = None

        if isinstance(rows, Mapping):
            rows = [rows]
        if not rows:
            return None

        try:
            method = InsertMethod(method) if method is not None else InsertMethod.DEFAULT
        except ValueError as e:
            raise ConfigurationError(ErrorMessages.INVALID_INSERT_METHOD.format(method=method)) from e

        columns = self._builder.columns_of(rows)

        if not columns:
            cursor = self._insert_defaults(table, len(rows))
        elif method is InsertMethod.PREPARED:
            cursor = self._insert_prepared(table, rows, columns)
        elif method is InsertMethod.BATCH:
            cursor = self._insert_batch(table, rows, columns)
        else:
            cursor = self._insert_default(table, rows, columns)

        self._last_insert_cursor = cursor
        return cursor

    def _insert_prepared(self, table: str, rows: Sequence[Mapping[str, Any]], columns: List[str]) -> Any:
        query = self._builder.insert_head(table, columns) + self._builder.placeholders(len(columns))
        cursor = self._conn.cursor()

        for row in rows:
            values = []
            for column in columns:
                value = self.format(row.get(column))
                if isinstance(value, Literal):
                    raise ConfigurationError(ErrorMessages.LITERAL_IN_PREPARED.format(column=column))
                values.append(value)

            self.on_query(query, values)
            cursor.execute(query, values)

        return cursor

    def _insert_batch(self, table: str, rows: Sequence[Mapping[str, Any]], columns: List[str]) -> Any:
        query = self._builder.insert_head(table, columns)
        query += SQLConstants.LIST_SEPARATOR.join(self._builder.value_lists(rows, columns))
        return self.query(query)

    def _insert_defaults(self, table: str, count: int) -> Any:
        query = self._builder.insert_defaults(table)
        cursor = None
        for _ in range(count):
            cursor = self.query(query)
        return cursor

    def _insert_default(self, table: str, rows: Sequence[Mapping[str, Any]], columns: List[str]) -> Any:
        head = self._builder.insert_head(table, columns)
        cursor = None
        for value_list in self._builder.value_lists(rows, columns):
            cursor = self.query(head + value_list)
        return cursor

    def update(
        self,
        table: str,
        data: Mapping[str, Any],
        where: Union[str, Sequence[str], None] = None,
        params: Optional[Sequence[Any]] = None,
    ) -> Any:
        """Execute ``UPDATE table SET data [WHERE where]``; nothing happens when data is empty."""
        if not data:
            return None

        query = self._builder.update(table, data, self._as_conditions(where))
        return self.query(query, params)

    def delete(
        self,
        table: str,
        where: Union[str, Sequence[str], None] = None,
        params: Optional[Sequence[Any]] = None,
    ) -> Any:
        """Execute ``DELETE FROM table [WHERE where]``."""
        query = self._builder.delete(table, self._as_conditions(where))
        return self.query(query, params)

    @staticmethod
    def _as_conditions(where: Union[str, Sequence[str], None]) -> List[str]:
        if where is None:
            return []
        if isinstance(where, str):
            return [where]
        return list(where)

    # ------------------------------------------------------------------
    # SQL utility
    # ------------------------------------------------------------------

    def get_suffix(
        self,
        where: Sequence[str] = (),
        group_by: Sequence[str] = (),
        having: Sequence[str] = (),
        order_by: Sequence[str] = (),
        limit_count: Optional[int] = None,
        limit_offset: Optional[int] = None,
    ) -> str:
        return self._builder.suffix(where, group_by, having, order_by, limit_count, limit_offset)

    def condition_list(
        self, where: Sequence[str], or_where: Sequence[str] = (), scope: Sequence[str] = ()
    ) -> List[str]:
        return self._builder.condition_list(where, or_where, scope)

    def is_(self, column: str, value: Any, negate: bool = False) -> str:
        """
        Build an SQL condition expressing that column is value, or is in value
        when value is a list. Handles None and Literal values.
        """
        return self._builder.is_condition(column, value, negate)

    def is_not(self, column: str, value: Any) -> str:
        return self._builder.is_condition(column, value, negate=True)

    def quote(self, value: Any) -> str:
        return self._builder.quote(value)

    def format(self, value: Any) -> Any:
        return self._builder.format(value)

    def quote_identifier(self, identifier: str) -> str:
        return self._builder.quote_identifier(identifier)

    def order_term(self, column: str, direction: str) -> str:
        return self._builder.order_term(self.quote_identifier(column), direction)

    def literal(self, value: Any) -> Literal:
        return Literal(str(value))

    def on_query(self, query: str, params: Optional[List[Any]] = None) -> None:
        """Log the statement and hand it to the query callback, if any."""
        params = params if params is not None else []
        logger.debug(LoggingConstants.QUERY, query, params)
        if self._query_callback is not None:
            self._query_callback(query, params)

    def set_query_callback(self, callback: Optional[QueryCallback]) -> "Database":
        self._query_callback = callback
        return self

    def __repr__(self) -> str:
        return f"<Database(delimiter={self.hints.identifier_delimiter!r})>"


__all__ = ["Database"]
