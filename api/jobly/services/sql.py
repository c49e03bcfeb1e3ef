"""
Partial UPDATE compilation.

Turns an ordered set of changed fields into a `SET` fragment with positional
placeholders and the value list that binds to it:

    >>> update = sql_for_partial_update(
    ...     {"firstName": "pizza", "isAdmin": False},
    ...     {"firstName": "first_name", "isAdmin": "is_admin"},
    ... )
    >>> update.set_cols
    '"first_name"=$1, "is_admin"=$2'
    >>> update.values
    ['pizza', False]

Fragment i and value i always share placeholder index `start_index + i`.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from jobly.services.repository import RepositoryValidationError

FieldChanges = Mapping[str, Any] | Iterable[tuple[str, Any]]


@dataclass(frozen=True, slots=True)
class PartialUpdate:
    fragments: list[str]
    values: list[Any]
    start_index: int = 1
    columns: list[str] = field(default_factory=list)

    @property
    def set_cols(self) -> str:
        return ", ".join(self.fragments)

    @property
    def next_index(self) -> int:
        """Placeholder index for the first parameter after the SET values."""
        return self.start_index + len(self.values)


def sql_for_partial_update(
    data: FieldChanges,
    column_map: Mapping[str, str],
    *,
    start_index: int = 1,
    immutable: Collection[str] = (),
) -> PartialUpdate:
    if start_index < 1:
        raise ValueError("start_index must be >= 1")

    pairs = list(data.items()) if isinstance(data, Mapping) else list(data)
    if not pairs:
        raise RepositoryValidationError("no data to update")

    fragments: list[str] = []
    values: list[Any] = []
    columns: list[str] = []
    seen: set[str] = set()
    for field_name, value in pairs:
        column = column_map.get(field_name) or field_name
        if field_name in immutable or column in immutable:
            raise RepositoryValidationError(f"{field_name} cannot be updated")
        if column in seen:
            raise RepositoryValidationError(f"{column} supplied more than once")
        seen.add(column)

        values.append(value)
        # placeholder index always equals the value's position in `values`
        fragments.append(f'"{_quote_ident(column)}"=${start_index + len(values) - 1}')
        columns.append(column)

    return PartialUpdate(fragments=fragments, values=values, start_index=start_index, columns=columns)


def _quote_ident(name: str) -> str:
    if not name:
        raise RepositoryValidationError("field name must be non-empty")
    return name.replace('"', '""')
