"""Columnar views over mmCIF categories.

A :class:`Category` is what the tokenizer hands to the consumer: a named
table of equally long text columns. Columns that the file does not define
are still addressable and behave as if every row held the empty string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from cifstream.data.parsers.values import as_optional_string


@dataclass
class Column:
    """A single mmCIF item (``_category.item``) across all rows."""

    name: str
    values: Optional[List[str]] = None

    def is_defined(self) -> bool:
        return self.values is not None

    @property
    def row_count(self) -> int:
        return len(self.values) if self.values is not None else 0

    def get_string_data(self, row: int) -> str:
        """Raw cell text; the empty string for an undefined column."""
        if self.values is None:
            return ""
        return self.values[row]

    def get(self, row: int) -> Optional[str]:
        """Cell text with ``?``, ``.`` and empty decoded as None."""
        return as_optional_string(self.get_string_data(row))

    def __iter__(self) -> Iterator[Optional[str]]:
        for row in range(self.row_count):
            yield self.get(row)


@dataclass
class Category:
    """A named mmCIF category with its columns.

    Attributes:
        name: Category name without the leading underscore (e.g. 'atom_site')
        columns: Column name to Column, in file order
    """

    name: str
    columns: Dict[str, Column] = field(default_factory=dict)
    defined: bool = True

    @classmethod
    def empty(cls, name: str) -> "Category":
        """An undefined category: no columns, no rows."""
        return cls(name=name, columns={}, defined=False)

    @classmethod
    def from_columns(cls, name: str, columns: Mapping[str, Sequence[str]]) -> "Category":
        """Build a category from column name to cell list.

        Raises:
            ValueError: If the columns differ in length
        """
        lengths = {len(values) for values in columns.values()}
        if len(lengths) > 1:
            raise ValueError(
                f"Columns of category {name!r} differ in length: {sorted(lengths)}"
            )
        return cls(
            name=name,
            columns={key: Column(key, list(values)) for key, values in columns.items()},
        )

    @classmethod
    def from_rows(cls, name: str, rows: Iterable[Mapping[str, str]]) -> "Category":
        """Build a category from row dictionaries sharing the same keys."""
        rows = list(rows)
        keys: List[str] = []
        for row in rows:
            for key in row:
                if key not in keys:
                    keys.append(key)
        return cls.from_columns(name, {key: [row.get(key, "?") for row in rows] for key in keys})

    def is_defined(self) -> bool:
        return self.defined

    @property
    def row_count(self) -> int:
        for column in self.columns.values():
            return column.row_count
        return 0

    @property
    def column_names(self) -> List[str]:
        return list(self.columns)

    def get_column(self, name: str) -> Column:
        column = self.columns.get(name)
        if column is None:
            return Column(name)
        return column

    def __contains__(self, name: str) -> bool:
        return name in self.columns
