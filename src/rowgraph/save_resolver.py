# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Recursive save of a tree of rows in dependency order.

The tree is flattened into a worklist once. Each round writes every known
nested id into its owner's reference column, saves every row whose required
columns are all present, and pushes each saved row's id into its collection
children. Rounds repeat until all rows are clean; a round that saves nothing
while dirty rows remain means the structure cannot be saved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Set, Tuple

from .constants import ErrorMessages, LoggingConstants
from .exceptions import UnsatisfiableStructureError

if TYPE_CHECKING:
    from .row import Row

logger = logging.getLogger(__name__)


class SaveResolver:
    """
    Worklist fixpoint over all rows reachable from a root row.

    Runs at most one round per row before it either succeeds or raises
    UnsatisfiableStructureError.
    """

    def __init__(self, root: "Row"):
        self._root = root
        self._rows = self.flatten(root)

    @staticmethod
    def flatten(root: "Row") -> List["Row"]:
        """All rows reachable from ``root``, owners before nested rows, each row once."""
        rows: List["Row"] = []
        seen: Set[int] = set()
        stack = [root]

        while stack:
            row = stack.pop()
            if id(row) in seen:
                continue
            seen.add(id(row))
            rows.append(row)
            stack.extend(reversed(list(row.iter_nested())))

        return rows

    @property
    def rows(self) -> List["Row"]:
        return list(self._rows)

    def run(self) -> "Row":
        """Save every row in the worklist; returns the root row."""
        total = len(self._rows)
        logger.debug(LoggingConstants.SAVE_START, total, self._root.get_table())

        round_number = 0
        while True:
            round_number += 1
            saved = self._run_round()

            # ids generated late in the round still have to reach earlier rows
            for row in self._rows:
                row.update_references()

            clean = sum(1 for row in self._rows if row.is_clean())
            logger.debug(LoggingConstants.SAVE_ROUND, round_number, clean, total)

            if clean == total:
                return self._root
            if not saved:
                self._fail()

    def _run_round(self) -> int:
        saved = 0
        for row in self._rows:
            row.update_references()
            if row.get_missing():
                continue

            if not row.is_clean():
                saved += 1
            row.save(False)
            row.update_back_references()

        return saved

    def unresolved(self) -> List[Tuple[str, List[str]]]:
        """Table and missing required columns of every row not yet saved."""
        return [
            (row.get_table(), row.get_missing())
            for row in self._rows
            if not row.is_clean()
        ]

    def _fail(self) -> None:
        table = self._root.get_table()
        unresolved = self.unresolved()
        message = ErrorMessages.UNSATISFIABLE_STRUCTURE.format(table=table, unresolved=unresolved)
        logger.error(message)
        raise UnsatisfiableStructureError(message, table, unresolved)


__all__ = ["SaveResolver"]
