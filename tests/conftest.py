# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and shared fixtures for RowGraph tests.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Generator, List, Tuple

import pytest

from rowgraph import Database

from . import SCHEMA, SEED


class QueryRecorder:
    """Query callback collecting every executed statement."""

    def __init__(self) -> None:
        self.queries: List[Tuple[str, List[Any]]] = []

    def __call__(self, query: str, params: List[Any]) -> None:
        self.queries.append((query, list(params)))

    @property
    def statements(self) -> List[str]:
        return [query for query, _ in self.queries]

    @property
    def selects(self) -> List[str]:
        return [query for query in self.statements if query.startswith("SELECT")]

    @property
    def inserts(self) -> List[str]:
        return [query for query in self.statements if query.startswith("INSERT")]

    def clear(self) -> None:
        self.queries.clear()


@pytest.fixture(scope="function")
def connection() -> Generator[sqlite3.Connection, None, None]:
    """In-memory sqlite connection in autocommit mode, with schema and seed data."""
    conn = sqlite3.connect(":memory:", isolation_level=None)
    try:
        conn.executescript(SCHEMA)
        conn.executescript(SEED)
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def db(connection: sqlite3.Connection) -> Database:
    """Database with the schema hints the test schema needs."""
    database = Database(connection)
    database.set_alias("author", "user")
    database.set_alias("editor", "user")
    database.set_primary("categorization", ["category_id", "post_id"])
    database.set_required("chicken", "egg_id")
    database.set_required("egg", "chicken_id")
    return database


@pytest.fixture(scope="function")
def recorder(db: Database) -> QueryRecorder:
    """Record every statement executed through ``db``."""
    query_recorder = QueryRecorder()
    db.set_query_callback(query_recorder)
    return query_recorder
