# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database tests for RowGraph.

Tests cover:
- Value and identifier quoting
- Null- and list-aware conditions
- Statement suffixes
- Insert methods, update and delete
- Transactions and the query callback
- Table rewriting
"""

from __future__ import annotations

import datetime
import logging
import sqlite3
from typing import Generator

import pytest
from pydantic import ValidationError

from rowgraph import ConfigurationError, Database, Literal, Result, Row, SchemaHints

from . import SCHEMA, SEED


@pytest.fixture(scope="function")
def default_mode_connection() -> Generator[sqlite3.Connection, None, None]:
    """In-memory sqlite connection in the driver's default transaction mode."""
    conn = sqlite3.connect(":memory:")
    try:
        conn.executescript(SCHEMA)
        conn.executescript(SEED)
        conn.commit()
        yield conn
    finally:
        conn.close()


class TestQuoting:
    """Test value and identifier quoting."""

    def test_quote_scalars(self, db):
        """Test quoting of None, booleans and numbers."""
        assert db.quote(None) == "NULL"
        assert db.quote(True) == "1"
        assert db.quote(False) == "0"
        assert db.quote(42) == "42"
        assert db.quote(1.5) == "1.5"

    def test_quote_strings_escape_single_quotes(self, db):
        """Test strings are single-quoted with embedded quotes doubled."""
        assert db.quote("plain") == "'plain'"
        assert db.quote("O'Hara") == "'O''Hara'"

    def test_quote_literal_passes_through(self, db):
        """Test literals are placed into SQL untouched."""
        assert db.quote(Literal("CURRENT_TIMESTAMP")) == "CURRENT_TIMESTAMP"
        assert db.quote(db.literal("NOW()")) == "NOW()"

    def test_quote_dates(self, db):
        """Test datetime and date formatting."""
        assert db.quote(datetime.datetime(2020, 1, 2, 3, 4, 5)) == "'2020-01-02 03:04:05'"
        assert db.quote(datetime.date(2020, 1, 2)) == "'2020-01-02'"

    def test_quote_identifier(self, db):
        """Test identifiers are quoted per dot-separated part."""
        assert db.quote_identifier("post") == "`post`"
        assert db.quote_identifier("post.id") == "`post`.`id`"
        assert db.quote_identifier("we`ird") == "`we``ird`"

    def test_identifier_delimiter_can_be_changed_or_disabled(self, db):
        """Test double quote and disabled identifier quoting."""
        db.set_identifier_delimiter('"')
        assert db.quote_identifier("post.id") == '"post"."id"'

        db.set_identifier_delimiter(None)
        assert db.quote_identifier("post.id") == "post.id"

    def test_invalid_identifier_delimiter_rejected(self, db):
        """Test unsupported delimiters fail validation."""
        with pytest.raises(ValidationError):
            db.set_identifier_delimiter("[")


class TestConditions:
    """Test null-aware and list-aware conditions."""

    def test_is_scalar_and_null(self, db):
        """Test equality and IS NULL conditions."""
        assert db.is_("id", 1) == "`id` = 1"
        assert db.is_("id", None) == "`id` IS NULL"
        assert db.is_not("id", 1) == "`id` != 1"
        assert db.is_not("id", None) == "`id` IS NOT NULL"

    def test_is_list(self, db):
        """Test list membership conditions."""
        assert db.is_("id", [1, 2]) == "`id` IN ( 1, 2 )"
        assert db.is_not("id", [1, 2]) == "`id` NOT IN ( 1, 2 )"
        assert db.is_("id", [7]) == "`id` = 7"

    def test_is_empty_list(self, db):
        """Test empty lists never match, and always match when negated."""
        assert db.is_("id", []) == "0=1"
        assert db.is_not("id", []) == "1=1"

    def test_is_list_with_null(self, db):
        """Test lists containing None also match NULL."""
        assert db.is_("id", [1, None]) == "`id` IN ( 1 ) OR `id` IS NULL"
        assert db.is_not("id", [1, None]) == "`id` NOT IN ( 1 ) AND `id` IS NOT NULL"

    def test_get_suffix(self, db):
        """Test the WHERE/GROUP BY/HAVING/ORDER BY/LIMIT suffix."""
        suffix = db.get_suffix(
            where=["a = 1", "b = 2"],
            group_by=["`author_id`"],
            having=["COUNT(*) > 1"],
            order_by=["`id` ASC"],
            limit_count=5,
            limit_offset=10,
        )
        assert suffix == (
            " WHERE (a = 1) AND (b = 2) GROUP BY `author_id` HAVING (COUNT(*) > 1)"
            " ORDER BY `id` ASC LIMIT 5 OFFSET 10"
        )

    def test_get_suffix_empty(self, db):
        """Test an empty suffix."""
        assert db.get_suffix() == ""

    def test_order_term_rejects_invalid_direction(self, db):
        """Test only ASC and DESC are accepted."""
        assert db.order_term("id", "desc") == "`id` DESC"
        with pytest.raises(ConfigurationError):
            db.order_term("id", "sideways")


class TestStatements:
    """Test select, insert, update and delete."""

    def test_select_returns_dicts(self, db):
        """Test select returns column -> value dicts."""
        rows = db.select("user")
        assert rows[0] == {"id": 1, "name": "Writer"}
        assert len(rows) == 3

    def test_select_with_scope(self, db):
        """Test scope conditions are AND-ed."""
        rows = db.select("post", scope=[db.is_("author_id", 1)])
        assert sorted(row["id"] for row in rows) == [11, 12]

    def test_insert_default(self, db):
        """Test the default method inserts one statement per row."""
        db.insert("user", [{"name": "A"}, {"name": "B"}])
        assert db.table("user").count() == 5

    def test_insert_single_mapping(self, db):
        """Test a single mapping is inserted as one row."""
        db.insert("user", {"name": "Solo"})
        assert db.last_insert_id() == 4

    def test_insert_batch(self, db, recorder):
        """Test the batch method issues a single statement."""
        db.insert("user", [{"name": "A"}, {"name": "B"}, {"name": "C"}], "batch")
        assert len(recorder.inserts) == 1
        assert db.table("user").count() == 6

    def test_insert_prepared(self, db, recorder):
        """Test the prepared method binds params per row."""
        db.insert("user", [{"name": "A"}, {"name": "B"}], "prepared")
        assert recorder.queries[0] == ("INSERT INTO `user` ( `name` ) VALUES ( ? )", ["A"])
        assert recorder.queries[1][1] == ["B"]
        assert db.table("user").count() == 5

    def test_insert_prepared_rejects_literals(self, db):
        """Test prepared inserts cannot bind literals."""
        with pytest.raises(ConfigurationError):
            db.insert("post", {"title": "x", "date_published": Literal("CURRENT_DATE")}, "prepared")

    def test_insert_literal_default(self, db):
        """Test literals are inserted untouched by the default method."""
        db.insert("post", {"title": "Now", "date_published": Literal("'2000-01-01'")})
        row = db.table("post").where("title", "Now").fetch()
        assert row.date_published == "2000-01-01"

    def test_insert_unknown_method(self, db):
        """Test unknown insert methods are rejected."""
        with pytest.raises(ConfigurationError):
            db.insert("user", {"name": "x"}, "bulk")

    def test_insert_nothing(self, db, recorder):
        """Test empty inserts issue no statement."""
        assert db.insert("user", []) is None
        assert recorder.queries == []

    def test_insert_row_without_columns(self, db, recorder):
        """Test a row with no columns is inserted with DEFAULT VALUES."""
        db.insert("category", {})

        assert recorder.statements == ["INSERT INTO `category` DEFAULT VALUES"]
        assert db.last_insert_id() == 23
        assert db.table("category", 23).title is None

    def test_last_insert_id_reset_by_empty_insert(self, db):
        """Test an insert issuing nothing leaves no stale last insert id."""
        db.insert("user", {"name": "Earlier"})
        assert db.last_insert_id() == 4

        db.insert("post", [])
        assert db.last_insert_id() is None

    def test_update(self, db):
        """Test update with a raw condition and params."""
        db.update("user", {"name": "Renamed"}, "id = ?", [1])
        assert db.table("user", 1).name == "Renamed"
        assert db.table("user", 2).name == "Editor"

    def test_update_without_data_is_noop(self, db, recorder):
        """Test update with empty data issues no statement."""
        assert db.update("user", {}) is None
        assert recorder.queries == []

    def test_delete(self, db):
        """Test delete with a condition list."""
        db.delete("user", [db.is_("id", [1, 2])])
        assert db.table("user").count() == 1

    def test_query_raw(self, db):
        """Test raw queries with params."""
        cursor = db.query("SELECT name FROM user WHERE id = ?", [3])
        assert cursor.fetchone()[0] == "Reader"


class TestFactories:
    """Test table() and the row/result factories."""

    def test_table_returns_root_result(self, db):
        """Test table() returns an unbound result."""
        result = db.table("post")
        assert isinstance(result, Result)
        assert result.get_parent() is None
        assert result.is_single() is None

    def test_table_strips_list_suffix_and_resolves_alias(self, db):
        """Test table names are normalized."""
        assert db.table("postList").get_table() == "post"
        assert db.table("author").get_table() == "user"

    def test_table_by_id(self, db):
        """Test fetching a single row by id."""
        row = db.table("post", 12)
        assert isinstance(row, Row)
        assert row.title == "Foo released"
        assert db.table("post", 999) is None

    def test_table_by_compound_id(self, db):
        """Test fetching a single row by compound id."""
        row = db.table("categorization", {"category_id": 22, "post_id": 13})
        assert row.get_id() == {"category_id": 22, "post_id": 13}

    def test_create_row(self, db):
        """Test create_row builds a pending row."""
        row = db.create_row("author", {"name": "New"})
        assert row.get_table() == "user"
        assert not row.exists()
        assert row.get_result() is None


class TestTransactions:
    """Test transaction control."""

    def test_transaction_commits(self, db):
        """Test a successful block is committed."""
        with db.transaction():
            db.insert("user", {"name": "Kept"})
        assert db.table("user").count() == 4

    def test_transaction_rolls_back_and_reraises(self, db):
        """Test a failing block is rolled back and the error propagates."""
        with pytest.raises(RuntimeError):
            with db.transaction():
                db.insert("user", {"name": "Lost"})
                raise RuntimeError("boom")
        assert db.table("user").count() == 3

    def test_explicit_begin_rollback(self, db):
        """Test begin/rollback."""
        db.begin()
        db.delete("user")
        db.rollback()
        assert db.table("user").count() == 3

    def test_transaction_joins_implicit_transaction(self, default_mode_connection):
        """Test a transaction after a write the driver already opened a transaction for."""
        db = Database(default_mode_connection)
        db.insert("user", {"name": "Before"})
        assert default_mode_connection.in_transaction

        with db.transaction():
            db.insert("user", {"name": "Inside"})

        assert not default_mode_connection.in_transaction
        assert db.table("user").count() == 5

    def test_transaction_default_mode_rollback(self, default_mode_connection):
        """Test rolling back on a default-mode connection discards the driver's transaction."""
        db = Database(default_mode_connection)

        with pytest.raises(RuntimeError):
            with db.transaction():
                db.insert("user", {"name": "Lost"})
                raise RuntimeError("boom")

        assert not default_mode_connection.in_transaction
        assert db.table("user").count() == 3

    def test_driver_errors_propagate(self, db):
        """Test driver errors are not wrapped."""
        with pytest.raises(sqlite3.IntegrityError):
            db.insert("categorization", {"category_id": 21, "post_id": 11})


class TestObservation:
    """Test query logging, callbacks and table rewriting."""

    def test_query_callback_sees_statements(self, db, recorder):
        """Test the callback receives SQL and params."""
        db.table("post").where("id > ?", 11).fetch_all()
        assert recorder.queries == [("SELECT * FROM `post` WHERE (id > ?)", [11])]

    def test_queries_logged_at_debug(self, db, caplog):
        """Test statements are logged on the database logger."""
        with caplog.at_level(logging.DEBUG, logger="rowgraph.database"):
            db.table("user").fetch_all()
        assert any("SELECT * FROM `user`" in record.getMessage() for record in caplog.records)

    def test_rewrite_table(self, db, connection):
        """Test rewritten table names are used in SQL and sequences."""
        connection.execute("CREATE TABLE app_note (id INTEGER PRIMARY KEY, body TEXT)")
        db.set_rewrite(lambda table: "app_" + table)

        db.table("note").insert({"body": "hello"})
        assert db.table("note").fetch().body == "hello"
        assert db.get_sequence("note") == "app_note_id_seq"

    def test_hints_and_overrides(self, connection):
        """Test constructing with prepared hints and keyword overrides."""
        hints = SchemaHints(primary={"categorization": ["category_id", "post_id"]})
        database = Database(connection, hints, identifier_delimiter='"')

        assert database.get_primary("categorization") == ["category_id", "post_id"]
        assert database.is_required("categorization", "post_id")
        assert database.quote_identifier("post") == '"post"'
