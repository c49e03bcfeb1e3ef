"""
Dynamic WHERE clause builders for listing organizations and postings.

Every builder appends a bound value and emits its `$N` marker in the same
step, so the Nth marker in `WhereClause.sql` always binds `WhereClause.values[N-1]`.
Filters are evaluated in a fixed order per entity which keeps the generated
text stable for identical input.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Any

from jobly.services.repository import RepositoryValidationError, coerce_text

TRUTHY_VALUES = {"true", "1", "yes", "on"}
FALSY_VALUES = {"false", "0", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class WhereClause:
    sql: str
    values: list[Any]


@dataclass(frozen=True, slots=True)
class OrganizationFilters:
    name: str | None = None
    min_employees: int | str | None = None
    max_employees: int | str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> OrganizationFilters:
        return cls(**_normalize_filter_keys(raw, cls, {"minEmployees": "min_employees", "maxEmployees": "max_employees"}))


@dataclass(frozen=True, slots=True)
class PostingFilters:
    title: str | None = None
    min_salary: int | float | Decimal | str | None = None
    has_equity: bool | str | None = None
    organization_handle: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> PostingFilters:
        return cls(
            **_normalize_filter_keys(
                raw,
                cls,
                {
                    "minSalary": "min_salary",
                    "hasEquity": "has_equity",
                    "organizationHandle": "organization_handle",
                },
            )
        )


def build_organization_where(filters: OrganizationFilters | None = None) -> WhereClause:
    filters = filters or OrganizationFilters()
    min_employees = _coerce_int(filters.min_employees, field_name="min_employees")
    max_employees = _coerce_int(filters.max_employees, field_name="max_employees")
    if min_employees is not None and max_employees is not None and min_employees > max_employees:
        raise RepositoryValidationError("min_employees cannot be greater than max_employees")

    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    name = _search_term(filters.name)
    if name is not None:
        conditions.append(f"name ILIKE {bind(_contains_pattern(name))}")
    if min_employees is not None:
        conditions.append(f"num_employees >= {bind(min_employees)}")
    if max_employees is not None:
        conditions.append(f"num_employees <= {bind(max_employees)}")

    return _where(conditions, params)


def build_posting_where(filters: PostingFilters | None = None) -> WhereClause:
    filters = filters or PostingFilters()
    min_salary = _coerce_number(filters.min_salary, field_name="min_salary")
    has_equity = coerce_flag(filters.has_equity, field_name="has_equity")

    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    title = _search_term(filters.title)
    if title is not None:
        conditions.append(f"title ILIKE {bind(_contains_pattern(title))}")
    if min_salary is not None:
        conditions.append(f"salary >= {bind(min_salary)}::numeric")
    if has_equity:
        conditions.append(f"equity > {bind(0)}")
    organization_handle = coerce_text(filters.organization_handle)
    if organization_handle:
        conditions.append(f"organization_handle = {bind(organization_handle)}")

    return _where(conditions, params)


def coerce_flag(value: Any, *, field_name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUTHY_VALUES:
            return True
        if lowered in FALSY_VALUES:
            return False
    raise RepositoryValidationError(f"{field_name} must be a boolean")


def _where(conditions: list[str], params: list[Any]) -> WhereClause:
    if not conditions:
        return WhereClause(sql="", values=params)
    return WhereClause(sql=" WHERE " + " AND ".join(conditions), values=params)


def _search_term(value: Any) -> str | None:
    # Matched verbatim, surrounding spaces included; blank input is no filter.
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _contains_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _coerce_int(value: Any, *, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise RepositoryValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            pass
    raise RepositoryValidationError(f"{field_name} must be an integer")


def _coerce_number(value: Any, *, field_name: str) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise RepositoryValidationError(f"{field_name} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise RepositoryValidationError(f"{field_name} must be a number") from exc
    if not number.is_finite():
        raise RepositoryValidationError(f"{field_name} must be a number")
    return number


def _normalize_filter_keys(
    raw: Mapping[str, Any] | None,
    filter_cls: type,
    aliases: Mapping[str, str],
) -> dict[str, Any]:
    if not raw:
        return {}
    known = {item.name for item in fields(filter_cls)}
    normalized: dict[str, Any] = {}
    unsupported: list[str] = []
    for key, value in raw.items():
        name = aliases.get(key, key)
        if name not in known:
            unsupported.append(key)
            continue
        if value is not None:
            normalized[name] = value
    if unsupported:
        raise RepositoryValidationError(f"unsupported filter keys: {', '.join(sorted(unsupported))}")
    return normalized
