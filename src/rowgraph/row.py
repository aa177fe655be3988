# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Row class for RowGraph: a schema-flexible record with dirty tracking.

Column values are scalars, None, Literal markers, nested Rows (single
references) or lists of Rows (collections named with a ``List`` suffix).
Nested rows are saved together with their owner by the SaveResolver.
"""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .constants import ErrorMessages, SQLConstants
from .conventions import split_association_name
from .exceptions import ConfigurationError, IdentityError
from .literal import Literal
from .save_resolver import SaveResolver

if TYPE_CHECKING:
    from .database import Database
    from .result import Result

logger = logging.getLogger(__name__)

RowId = Union[Any, Dict[str, Any], None]


def _is_same_value(current: Any, value: Any) -> bool:
    if current is value:
        return True
    # nested rows and lists compare by identity only
    if isinstance(value, (Row, list)):
        return False
    return type(current) is type(value) and current == value


class Row:
    """
    Database row with property access, dirty tracking and recursive save.

    Usage:
        post = db.create_row("post", {"title": "Hello"})
        post.author = {"name": "Ada"}
        post.categorizationList = [{"category": {"title": "News"}}]
        post.save()

    Columns are read as ``row["col"]`` or ``row.col``; a missing column reads
    as None. Column names shadowed by methods need the item syntax.
    """

    def __init__(
        self,
        db: "Database",
        name: str,
        properties: Optional[Mapping[str, Any]] = None,
        result: Optional["Result"] = None,
    ):
        self._db = db
        self._result = result
        self._table = db.get_alias(name)
        self._properties: Dict[str, Any] = {}
        self._modified: Dict[str, Any] = {}
        self._original_id: RowId = None
        self._cache: Dict[str, Any] = {}

        if properties:
            self.set_data(properties)

    # ------------------------------------------------------------------
    # Property access
    # ------------------------------------------------------------------

    def get(self, column: str, default: Any = None) -> Any:
        return self._properties.get(column, default)

    def set(self, column: str, value: Any) -> Row:
        """
        Set a property and mark it modified.

        Setting the value already held is a no-op. The name decides the shape:
        mappings under plain names become nested Rows, lists under
        ``List``-suffixed names become lists of Rows, all created against the
        table the (suffix-stripped) name aliases to. Any other pairing raises
        ConfigurationError.
        """
        if column in self._properties and _is_same_value(self._properties[column], value):
            return self

        value = self._convert(column, value)
        self._properties[column] = value
        self._modified[column] = value
        return self

    def _convert(self, column: str, value: Any) -> Any:
        name, is_collection = split_association_name(column)

        if isinstance(value, Mapping):
            if is_collection:
                raise ConfigurationError(ErrorMessages.MAPPING_UNDER_COLLECTION.format(column=column))
            return self._db.create_row(self._db.get_alias(name), value)

        if isinstance(value, (list, tuple)):
            if not is_collection:
                raise ConfigurationError(ErrorMessages.LIST_UNDER_SINGLE.format(column=column))
            table = self._db.get_alias(name)
            return [
                item if isinstance(item, Row) else self._db.create_row(table, item)
                for item in value
            ]

        return value

    def remove(self, column: str) -> Row:
        """Remove a property; it is left out of subsequent saves."""
        self._properties.pop(column, None)
        self._modified.pop(column, None)
        return self

    def has_property(self, column: str) -> bool:
        return column in self._properties

    def __getitem__(self, column: str) -> Any:
        return self._properties.get(column)

    def __setitem__(self, column: str, value: Any) -> None:
        self.set(column, value)

    def __delitem__(self, column: str) -> None:
        self.remove(column)

    def __contains__(self, column: object) -> bool:
        return column in self._properties

    def __getattr__(self, column: str) -> Any:
        if column.startswith("_"):
            raise AttributeError(column)
        return self._properties.get(column)

    def __setattr__(self, column: str, value: Any) -> None:
        if column.startswith("_"):
            object.__setattr__(self, column, value)
        else:
            self.set(column, value)

    def __delattr__(self, column: str) -> None:
        if column.startswith("_"):
            object.__delattr__(self, column)
        else:
            self.remove(column)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._properties))

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._properties.items())

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def get_id(self) -> RowId:
        """
        Primary key value of this row.

        For compound keys a column -> value dict, or None if any part is unset.
        """
        primary = self._db.get_primary(self._table)

        if isinstance(primary, list):
            id = {}
            for column in primary:
                if self[column] is None:
                    return None
                id[column] = self[column]
            return id

        return self[primary]

    def get_data(self) -> Dict[str, Any]:
        """Flat row data: every property except nested rows and lists."""
        return {
            column: value
            for column, value in self._properties.items()
            if not isinstance(value, (Row, list))
        }

    def set_data(self, data: Mapping[str, Any]) -> Row:
        for column, value in data.items():
            self.set(column, value)
        return self

    def get_original_id(self) -> RowId:
        return self._original_id

    def get_modified(self) -> Dict[str, Any]:
        """Modified flat data, for UPDATE."""
        return {
            column: value
            for column, value in self._modified.items()
            if not isinstance(value, (Row, list))
        }

    def iter_nested(self) -> Iterator[Row]:
        """Directly nested rows and collection items, in property order."""
        for value in self._properties.values():
            if isinstance(value, Row):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Row):
                        yield item

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save(self, recursive: bool = True) -> Row:
        """
        Save this row.

        With ``recursive`` (the default) every nested row is saved too, in an
        order that satisfies required references; see SaveResolver. Not atomic:
        wrap in Database.transaction() if needed.
        """
        if recursive:
            SaveResolver(self).run()
            return self

        self.update_references()

        if self.is_clean():
            return self

        db = self._db
        table = self._table
        primary = db.get_primary(table)

        if self.exists():
            condition = self._original_id
            if not isinstance(condition, dict):
                condition = {primary: condition}
            db.table(table).where(condition).update(self.get_modified())
        else:
            cursor = db.table(table).insert(self.get_data())

            if cursor is not None and not isinstance(primary, list) and self[primary] is None:
                id = db.last_insert_id(db.get_sequence(table))
                if id is not None:
                    self[primary] = id

        return self.set_clean()

    def update_references(self) -> Row:
        """Write the ids of nested single rows into this row's reference columns."""
        for column, value in list(self._properties.items()):
            if not isinstance(value, Row):
                continue

            id = value.get_id()
            # unknown and compound ids cannot be written to one column
            if id is None or isinstance(id, dict):
                continue

            self.set(self._db.get_reference(self._table, column), id)

        return self

    def update_back_references(self) -> Row:
        """Write this row's id into the back-reference column of every nested collection row."""
        id = self.get_id()
        if id is None or isinstance(id, dict):
            return self

        for column, value in list(self._properties.items()):
            if not isinstance(value, list):
                continue

            name, _ = split_association_name(column)
            key = self._db.get_back_reference(self._table, name)
            for row in value:
                if isinstance(row, Row):
                    row.set(key, id)

        return self

    def get_missing(self) -> List[str]:
        """Required columns that are unset or None."""
        return [
            column
            for column in self._db.get_required(self._table)
            if self[column] is None
        ]

    def update(self, data: Mapping[str, Any], recursive: bool = True) -> Row:
        """Set data and save."""
        return self.set_data(data).save(recursive)

    def delete(self) -> Row:
        """
        Delete this row by its original id.

        The row is left dirty without an original id, so saving re-inserts it.
        """
        condition = self._original_id
        if condition is None:
            return self

        if not isinstance(condition, dict):
            condition = {self._db.get_primary(self._table): condition}

        self._db.table(self._table).where(condition).delete()
        self._original_id = None
        return self.set_dirty()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self._original_id is not None

    def is_clean(self) -> bool:
        return not self._modified

    def set_clean(self) -> Row:
        """Mark this row in sync with the database; requires a resolvable id."""
        id = self.get_id()
        if id is None:
            raise IdentityError(ErrorMessages.CLEAN_WITHOUT_ID.format(table=self._table))

        self._original_id = dict(id) if isinstance(id, dict) else id
        self._modified = {}
        return self

    def set_dirty(self) -> Row:
        """Mark every property modified."""
        self._modified = dict(self._properties)
        return self

    def reset_modified(self) -> Row:
        """Clear the modified set without touching the original id."""
        self._modified = {}
        return self

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def referenced(self, name: str, where: Union[str, Mapping[str, Any], None] = None, *params: Any) -> "Result":
        """Get referenced row(s) by name. Suffix ``List`` gets many rows."""
        result = self._db.create_result(self, name)
        if where is not None:
            result = result.where(where, *params)
        return result

    def get_root(self) -> Union["Result", Row]:
        if self._result is not None:
            return self._result.get_root()
        return self

    def get_cache(self, key: str) -> Any:
        return self._cache.get(key)

    def set_cache(self, key: str, value: Any) -> Row:
        self._cache[key] = value
        return self

    def get_local_keys(self, key: str) -> List[Any]:
        value = self[key]
        return [value] if value is not None else []

    def get_global_keys(self, key: str) -> List[Any]:
        if self._result is not None:
            return self._result.get_global_keys(key)
        return self.get_local_keys(key)

    def get_database(self) -> "Database":
        return self._db

    def get_result(self) -> Optional["Result"]:
        return self._result

    def get_table(self) -> str:
        return self._table

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready nested dict of this row."""
        return {column: _to_json(value) for column, value in self._properties.items()}

    def __repr__(self) -> str:
        state = "clean" if self.is_clean() else "dirty"
        return f"<Row({self._table}) id={self.get_id()!r} {state}>"


def _to_json(value: Any) -> Any:
    if isinstance(value, Row):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    if isinstance(value, datetime.datetime):
        return value.strftime(SQLConstants.DATETIME_FORMAT)
    if isinstance(value, datetime.date):
        return value.strftime(SQLConstants.DATE_FORMAT)
    if isinstance(value, Literal):
        return value.value
    return value


__all__ = ["Row"]
