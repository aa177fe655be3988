# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Test suite for RowGraph.

This package contains tests for all components of RowGraph:
- SQL building and quoting
- Schema conventions
- Result execution and eager loading
- Row dirty tracking and recursive saves
"""

SCHEMA = """
CREATE TABLE user (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT
);
CREATE TABLE post (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT,
    author_id INTEGER,
    editor_id INTEGER,
    date_published TEXT,
    is_published INTEGER DEFAULT 0
);
CREATE TABLE category (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT
);
CREATE TABLE categorization (
    category_id INTEGER NOT NULL,
    post_id INTEGER NOT NULL,
    PRIMARY KEY (category_id, post_id)
);
CREATE TABLE chicken (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    egg_id INTEGER NOT NULL
);
CREATE TABLE egg (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chicken_id INTEGER NOT NULL
);
"""

SEED = """
INSERT INTO user (id, name) VALUES (1, 'Writer'), (2, 'Editor'), (3, 'Reader');
INSERT INTO post (id, title, author_id, editor_id, date_published, is_published) VALUES
    (11, 'Championship won', 1, 2, '2014-09-18', 1),
    (12, 'Foo released', 1, 2, '2014-09-15', 1),
    (13, 'Bar released', 2, 3, '2014-09-21', 0);
INSERT INTO category (id, title) VALUES (21, 'Sports'), (22, 'Tech');
INSERT INTO categorization (category_id, post_id) VALUES (21, 11), (22, 12), (22, 13);
"""


__all__ = ["SCHEMA", "SEED"]
