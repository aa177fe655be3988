# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
RowGraph: traverse and persist trees of related rows over any DB-API connection.

Associations are eager-loaded with one SELECT per table/association shape, and
a recursive save persists nested new and existing rows in dependency order,
filling in foreign keys as ids become known.
"""

from __future__ import annotations

from .constants import AssociationKind, InsertMethod, OrderPosition, ResultPart
from .conventions import SchemaHints
from .database import Database
from .exceptions import (
    ConfigurationError,
    IdentityError,
    PagingError,
    RowGraphError,
    UnsatisfiableStructureError,
)
from .literal import Literal
from .result import Result
from .row import Row
from .save_resolver import SaveResolver

__version__ = "0.1.0"

__all__ = [
    "Database",
    "Result",
    "Row",
    "Literal",
    "SchemaHints",
    "SaveResolver",
    "AssociationKind",
    "InsertMethod",
    "OrderPosition",
    "ResultPart",
    "RowGraphError",
    "ConfigurationError",
    "IdentityError",
    "PagingError",
    "UnsatisfiableStructureError",
]
