# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Constants module for RowGraph.

This module centralizes all constants, naming conventions, and literal strings
used throughout the RowGraph codebase. No magic values are allowed elsewhere.

:module: constants
:synopsis: Centralized constants and configuration for RowGraph
:author: RowGraph Contributors
"""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Final


# ============================================================================
# ASSOCIATION KINDS
# ============================================================================

class AssociationKind(Enum):
    """
    How a result is bound to its parent.

    :class: AssociationKind
    :synopsis: Root results, single references and back-referenced collections
    """

    ROOT = "root"
    SINGLE = "single"          # child row is referenced by parent.<name>_id
    COLLECTION = "collection"  # children hold <parent table>_id


# ============================================================================
# INSERT METHODS
# ============================================================================

class InsertMethod(StrEnum):
    """Insert strategies understood by Database.insert()."""

    PREPARED = "prepared"  # one statement, bound parameters per row
    BATCH = "batch"        # one statement with many value lists
    DEFAULT = "default"    # one statement per row


class OrderPosition(StrEnum):
    """Where a new ORDER BY term goes."""

    START = "start"
    END = "end"


class ResultPart(StrEnum):
    """Parts of a select shape that can be reset with remove_part()."""

    WHERE = "where"
    OR_WHERE = "or_where"
    GROUP_BY = "group_by"
    HAVING = "having"
    ORDER_BY = "order_by"
    LIMIT_COUNT = "limit_count"
    LIMIT_OFFSET = "limit_offset"
    PARAMS = "params"


# ============================================================================
# NAMING CONVENTIONS
# ============================================================================

class NamingConventions:
    """Default schema conventions, all overridable through SchemaHints."""

    # @@ STEP 1: Define key conventions
    DEFAULT_PRIMARY_KEY: Final[str] = "id"
    REFERENCE_KEY_SUFFIX: Final[str] = "_id"
    SEQUENCE_SUFFIX: Final[str] = "_seq"
    SEQUENCE_SEPARATOR: Final[str] = "_"

    # @@ STEP 2: Define association naming
    LIST_SUFFIX: Final[str] = "List"

    # @@ STEP 3: Define identifier quoting
    DEFAULT_IDENTIFIER_DELIMITER: Final[str] = "`"
    ALLOWED_IDENTIFIER_DELIMITERS: Final[tuple] = ("`", '"', "")
    IDENTIFIER_SEPARATOR: Final[str] = "."

    # @@ STEP 4: Define the shortcut pattern for "column is value" conditions
    COLUMN_SHORTCUT_PATTERN: Final[str] = r"^[a-z0-9_.`\"]+$"


# ============================================================================
# SQL CONSTANTS
# ============================================================================

class SQLConstants:
    """SQL keywords and fragments used by the statement builder."""

    # @@ STEP 1: Define statement keywords
    SELECT: Final[str] = "SELECT"
    FROM: Final[str] = "FROM"
    WHERE: Final[str] = "WHERE"
    GROUP_BY: Final[str] = "GROUP BY"
    HAVING: Final[str] = "HAVING"
    ORDER_BY: Final[str] = "ORDER BY"
    LIMIT: Final[str] = "LIMIT"
    OFFSET: Final[str] = "OFFSET"
    INSERT_INTO: Final[str] = "INSERT INTO"
    VALUES: Final[str] = "VALUES"
    DEFAULT_VALUES: Final[str] = "DEFAULT VALUES"
    UPDATE: Final[str] = "UPDATE"
    SET: Final[str] = "SET"
    DELETE_FROM: Final[str] = "DELETE FROM"
    BEGIN: Final[str] = "BEGIN"

    # @@ STEP 2: Define operators
    AND: Final[str] = " AND "
    OR: Final[str] = " OR "
    IN: Final[str] = " IN "
    NOT_IN: Final[str] = " NOT IN "
    IS_NULL: Final[str] = " IS NULL"
    IS_NOT_NULL: Final[str] = " IS NOT NULL"
    EQ: Final[str] = " = "
    NEQ: Final[str] = " != "

    # @@ STEP 3: Define constant conditions
    ALWAYS_FALSE: Final[str] = "0=1"
    ALWAYS_TRUE: Final[str] = "1=1"

    # @@ STEP 4: Define value rendering
    STAR: Final[str] = "*"
    NULL: Final[str] = "NULL"
    TRUE: Final[str] = "1"
    FALSE: Final[str] = "0"
    PLACEHOLDER: Final[str] = "?"
    LIST_SEPARATOR: Final[str] = ", "
    ASC: Final[str] = "ASC"
    DESC: Final[str] = "DESC"
    DATETIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
    DATE_FORMAT: Final[str] = "%Y-%m-%d"

    # @@ STEP 5: Define aggregate functions
    COUNT: Final[str] = "COUNT"
    MIN: Final[str] = "MIN"
    MAX: Final[str] = "MAX"
    SUM: Final[str] = "SUM"

    # @@ STEP 6: Define sequence lookup
    CURRVAL_QUERY: Final[str] = "SELECT currval({})"


# ============================================================================
# ERROR MESSAGE CONSTANTS
# ============================================================================

class ErrorMessages:
    """Error message constants."""

    # @@ STEP 1: Define configuration errors
    VIA_ON_ROOT: Final[str] = "Cannot set reference key on root result of table '{table}'"
    LIMIT_ON_ASSOCIATION: Final[str] = "Cannot limit referenced result of table '{table}'"
    AGGREGATE_ON_ASSOCIATION: Final[str] = "Cannot aggregate referenced result of table '{table}'"
    INVALID_DIRECTION: Final[str] = "Invalid order direction: {direction}"
    INVALID_PART: Final[str] = "Unknown result part: {part}"
    INVALID_POSITION: Final[str] = "Order position must be 'start' or 'end', got {position!r}"
    INVALID_INSERT_METHOD: Final[str] = "Unknown insert method: {method}"
    INVALID_DELIMITER: Final[str] = "Identifier delimiter must be one of {allowed}, got {delimiter!r}"
    INVALID_PRIMARY: Final[str] = "Primary key of table '{table}' must be a column name or a non-empty list"
    INVALID_PARENT: Final[str] = "Result parent must be a Database, Result or Row, got {type_name}"
    MAPPING_UNDER_COLLECTION: Final[str] = "Cannot assign a mapping to collection property '{column}'; use a list"
    LIST_UNDER_SINGLE: Final[str] = "Cannot assign a list to property '{column}'; collection properties end with 'List'"

    # @@ STEP 2: Define identity errors
    CLEAN_WITHOUT_ID: Final[str] = "Cannot set row of table '{table}' clean without id"
    MISSING_KEY_COLUMN: Final[str] = "'{key}' does not exist in '{table}' result"

    # @@ STEP 3: Define save errors
    UNSATISFIABLE_STRUCTURE: Final[str] = (
        "Cannot recursively save structure ({table}) - add required values or allow NULL; "
        "unresolved: {unresolved}"
    )

    # @@ STEP 4: Define paging errors
    PAGE_BELOW_ONE: Final[str] = "Page parameter starts at 1, got {page}"

    # @@ STEP 5: Define engine errors
    LITERAL_IN_PREPARED: Final[str] = "Prepared inserts cannot bind SQL literals (column '{column}'); use the batch or default method"


# ============================================================================
# LOGGING CONSTANTS
# ============================================================================

class LoggingConstants:
    """Log message templates."""

    QUERY: Final[str] = "Executing SQL: %s params=%r"
    CACHE_HIT: Final[str] = "Eager-load cache hit for table %s"
    CACHE_MISS: Final[str] = "Eager-load cache miss for table %s, fetching"
    SAVE_ROUND: Final[str] = "Save round %d: %d/%d rows clean"
    SAVE_START: Final[str] = "Recursively saving %d rows rooted at table %s"
    TRANSACTION_ROLLBACK: Final[str] = "Rolling back transaction after %s"


# ============================================================================
# EXPORT ALL CONSTANTS
# ============================================================================

__all__ = [
    "AssociationKind",
    "InsertMethod",
    "OrderPosition",
    "ResultPart",
    "NamingConventions",
    "SQLConstants",
    "ErrorMessages",
    "LoggingConstants",
]
