# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Exception types raised by RowGraph.

All of them are local, synchronous failures. Driver errors (constraint
violations, connectivity) are never wrapped and reach the caller unchanged.
"""

from __future__ import annotations

from typing import List, Tuple


class RowGraphError(Exception):
    """Base class for every error raised by RowGraph itself."""


class ConfigurationError(RowGraphError, ValueError):
    """An operation is undefined for this result, e.g. limiting an association."""


class IdentityError(RowGraphError, ValueError):
    """A row or result lacks the key columns an operation depends on."""


class PagingError(RowGraphError, ValueError):
    """Page numbers start at 1."""


class UnsatisfiableStructureError(RowGraphError, RuntimeError):
    """
    A recursive save made no progress in a full round.

    Either required foreign keys form a cycle with no entry point, or a
    required column was never supplied.
    """

    def __init__(self, message: str, table: str, unresolved: List[Tuple[str, List[str]]]):
        super().__init__(message)
        self.table = table
        self.unresolved = unresolved


__all__ = [
    "RowGraphError",
    "ConfigurationError",
    "IdentityError",
    "PagingError",
    "UnsatisfiableStructureError",
]
