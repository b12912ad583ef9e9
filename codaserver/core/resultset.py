"""
CodaServer Resultset

Tabular query results exposed through a movable read cursor.

License: Mozilla Public License 2.0
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType, SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import ProtocolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDescriptor:
    """Column name plus whatever metadata the engine attached to it"""
    name: str
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ColumnDescriptor":
        if not isinstance(data, Mapping) or 'column_name' not in data:
            raise ProtocolError(f"Column descriptor without column_name: {data!r}")
        return cls(name=str(data['column_name']), metadata=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.metadata) if self.metadata else {'column_name': self.name}


class CombinedRow:
    """
    A single row viewed both by position and by column name.

    The two views are built independently: integer subscripts read the
    positional tuple, string subscripts read the name-keyed dict.
    """

    __slots__ = ('indexed', 'mapped')

    def __init__(self, indexed: Tuple[Any, ...], mapped: Dict[str, Any]):
        self.indexed = indexed
        self.mapped = mapped

    def __getitem__(self, key):
        if isinstance(key, (int, slice)):
            return self.indexed[key]
        return self.mapped[key]

    def __contains__(self, key) -> bool:
        return key in self.mapped

    def __len__(self) -> int:
        return len(self.indexed)

    def __iter__(self):
        return iter(self.indexed)

    def keys(self):
        return self.mapped.keys()

    def __eq__(self, other):
        if not isinstance(other, CombinedRow):
            return NotImplemented
        return self.indexed == other.indexed and self.mapped == other.mapped

    def __repr__(self):
        return f"CombinedRow(indexed={self.indexed!r}, mapped={self.mapped!r})"


class Resultset:
    """
    Column metadata, row data and a read cursor.

    Rows are fetched one at a time with the next_as_* methods. Once every row
    has been read they return None until reset() is called.
    """

    def __init__(self, columns: Sequence[ColumnDescriptor], rows: Sequence[Sequence[Any]]):
        """
        Initialize resultset.

        Args:
            columns: Ordered column descriptors
            rows: Ordered rows, each aligned positionally with columns

        Raises:
            ProtocolError: If a row's length differs from the column count
        """
        self._columns: Tuple[ColumnDescriptor, ...] = tuple(columns)
        width = len(self._columns)

        checked = []
        for index, row in enumerate(rows):
            if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
                raise ProtocolError(f"Row {index} is not a sequence of cells")
            if len(row) != width:
                raise ProtocolError(
                    f"Row {index} has {len(row)} cells, expected {width}",
                    {"row": index, "cells": len(row), "columns": width}
                )
            checked.append(tuple(row))

        self._rows: Tuple[Tuple[Any, ...], ...] = tuple(checked)
        self._cursor = 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Resultset":
        """
        Build a resultset from the tabular payload of an execute response.

        Args:
            payload: Mapping with 'columns' (list of descriptors) and 'data' (list of rows)

        Returns:
            Resultset with cursor at 0
        """
        raw_columns = payload.get('columns') or []
        raw_rows = payload.get('data') or []

        columns = [ColumnDescriptor.from_mapping(column) for column in raw_columns]
        resultset = cls(columns, raw_rows)

        logger.debug(f"Built resultset: {resultset.column_count} columns, {resultset.row_count} rows")
        return resultset

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def columns(self) -> Tuple[ColumnDescriptor, ...]:
        return self._columns

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self._columns]

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self):
        return (f"Resultset(columns={self.column_names}, rows={self.row_count}, "
                f"cursor={self._cursor})")

    def _advance(self) -> Optional[Tuple[Any, ...]]:
        if self._cursor >= len(self._rows):
            return None
        row = self._rows[self._cursor]
        self._cursor += 1
        return row

    def _keyed(self, row: Tuple[Any, ...]) -> Dict[str, Any]:
        return {column.name: value for column, value in zip(self._columns, row)}

    def next_as_object(self) -> Optional[SimpleNamespace]:
        """Next row as an object with one attribute per column"""
        row = self._advance()
        if row is None:
            return None
        return SimpleNamespace(**self._keyed(row))

    def next_as_map(self) -> Optional[Dict[str, Any]]:
        """Next row as a dict keyed by column name"""
        row = self._advance()
        if row is None:
            return None
        return self._keyed(row)

    def next_as_indexed(self) -> Optional[List[Any]]:
        """Next row as a list of cells in column order"""
        row = self._advance()
        if row is None:
            return None
        return list(row)

    def next_as_combined(self) -> Optional[CombinedRow]:
        """Next row with both positional and name-keyed views"""
        row = self._advance()
        if row is None:
            return None
        return CombinedRow(row, self._keyed(row))

    def reset(self):
        """Move the cursor back to the first row"""
        self._cursor = 0

    def fields(self) -> List[Dict[str, Any]]:
        """Column descriptors as plain dicts, independent of cursor position"""
        return [column.to_dict() for column in self._columns]
