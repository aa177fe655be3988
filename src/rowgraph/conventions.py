# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Schema conventions for RowGraph.

SchemaHints answers the questions the query and save machinery asks about a
schema without reading it: which column is the primary key of a table, how a
table references another one, how it is referenced back, which columns must be
present before a row can be inserted. Every answer falls back to a naming
convention (``id``, ``<name>_id``, ``<table>_id``) when no hint is stored.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ErrorMessages, NamingConventions

PrimaryKey = Union[str, List[str]]


class SchemaHints(BaseModel):
    """
    Validated container for per-table schema conventions.

    :class: SchemaHints
    :synopsis: Primary, reference, back-reference, alias, required and sequence hints
    """

    model_config = ConfigDict(validate_assignment=True)

    primary: Dict[str, PrimaryKey] = Field(default_factory=dict)
    references: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    back_references: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    aliases: Dict[str, str] = Field(default_factory=dict)
    required: Dict[str, List[str]] = Field(default_factory=dict)
    sequences: Dict[str, str] = Field(default_factory=dict)
    identifier_delimiter: Optional[str] = NamingConventions.DEFAULT_IDENTIFIER_DELIMITER

    @field_validator("identifier_delimiter")
    @classmethod
    def check_delimiter(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in NamingConventions.ALLOWED_IDENTIFIER_DELIMITERS:
            raise ValueError(ErrorMessages.INVALID_DELIMITER.format(
                allowed=NamingConventions.ALLOWED_IDENTIFIER_DELIMITERS, delimiter=value
            ))
        return value

    @field_validator("primary")
    @classmethod
    def check_primary(cls, value: Dict[str, PrimaryKey]) -> Dict[str, PrimaryKey]:
        for table, key in value.items():
            if isinstance(key, list) and (not key or not all(key)):
                raise ValueError(ErrorMessages.INVALID_PRIMARY.format(table=table))
            if isinstance(key, str) and not key:
                raise ValueError(ErrorMessages.INVALID_PRIMARY.format(table=table))
        return value

    def model_post_init(self, __context) -> None:
        # compound keys are never auto-generated, so their columns are required
        for table, key in self.primary.items():
            if isinstance(key, list):
                for column in key:
                    self.set_required(table, column)

    # ------------------------------------------------------------------
    # Primary keys
    # ------------------------------------------------------------------

    def get_primary(self, table: str) -> PrimaryKey:
        """Primary key of a table; a list for compound keys. Convention is ``id``."""
        return self.primary.get(table, NamingConventions.DEFAULT_PRIMARY_KEY)

    def set_primary(self, table: str, key: PrimaryKey) -> "SchemaHints":
        """
        Set the primary key of a table.

        Compound keys are passed as a list and always have to be set explicitly.
        Their columns become required, since they are never auto-generated.
        """
        if isinstance(key, tuple):
            key = list(key)
        self.primary = {**self.primary, table: key}

        if isinstance(key, list):
            for column in key:
                self.set_required(table, column)

        return self

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def get_reference(self, table: str, name: str) -> str:
        """How would ``table`` reference another table under ``name``? Convention is ``<name>_id``."""
        table_refs = self.references.get(table)
        if table_refs and name in table_refs:
            return table_refs[name]
        return f"{name}{NamingConventions.REFERENCE_KEY_SUFFIX}"

    def set_reference(self, table: str, name: str, key: str) -> "SchemaHints":
        references = {t: dict(refs) for t, refs in self.references.items()}
        references.setdefault(table, {})[name] = key
        self.references = references
        return self

    def get_back_reference(self, table: str, name: str) -> str:
        """How would ``table`` be referenced by another table under ``name``? Convention is ``<table>_id``."""
        table_refs = self.back_references.get(table)
        if table_refs and name in table_refs:
            return table_refs[name]
        return f"{table}{NamingConventions.REFERENCE_KEY_SUFFIX}"

    def set_back_reference(self, table: str, name: str, key: str) -> "SchemaHints":
        back_references = {t: dict(refs) for t, refs in self.back_references.items()}
        back_references.setdefault(table, {})[name] = key
        self.back_references = back_references
        return self

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def get_alias(self, alias: str) -> str:
        return self.aliases.get(alias, alias)

    def set_alias(self, alias: str, table: str) -> "SchemaHints":
        self.aliases = {**self.aliases, alias: table}
        return self

    # ------------------------------------------------------------------
    # Required columns
    # ------------------------------------------------------------------

    def is_required(self, table: str, column: str) -> bool:
        return column in self.required.get(table, ())

    def get_required(self, table: str) -> List[str]:
        """Columns that must be non-null before a row of ``table`` can be inserted."""
        return list(self.required.get(table, ()))

    def set_required(self, table: str, column: str) -> "SchemaHints":
        """
        Mark a column as required for saving.

        Any primary key that is not auto-generated should be required.
        """
        columns = self.get_required(table)
        if column not in columns:
            columns.append(column)
            self.required = {**self.required, table: columns}
        return self

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def get_sequence(self, table: str, rewritten_table: Optional[str] = None) -> Optional[str]:
        """
        Primary key sequence of a table, used to read generated ids on PostgreSQL.

        Convention is ``<rewritten table>_<primary>_seq``; compound keys have none.
        """
        if table in self.sequences:
            return self.sequences[table]

        primary = self.get_primary(table)
        if isinstance(primary, list):
            return None

        return NamingConventions.SEQUENCE_SEPARATOR.join(
            (rewritten_table or table, primary)
        ) + NamingConventions.SEQUENCE_SUFFIX

    def set_sequence(self, table: str, sequence: str) -> "SchemaHints":
        self.sequences = {**self.sequences, table: sequence}
        return self


def split_association_name(name: str) -> Tuple[str, bool]:
    """Strip the List suffix from an association name; report whether it named a collection."""
    suffix = NamingConventions.LIST_SUFFIX
    if name.endswith(suffix) and len(name) > len(suffix):
        return name[: -len(suffix)], True
    return name, False


__all__ = ["SchemaHints", "PrimaryKey", "split_association_name"]
