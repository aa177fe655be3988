# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Literal:
    """Raw SQL fragment that is placed into statements without quoting, e.g. NOW()."""

    value: str

    def __str__(self) -> str:
        return self.value
