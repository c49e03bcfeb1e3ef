from __future__ import annotations

import asyncio

from asyncpg import exceptions as pg_exc
import pytest

from jobly.services.filters import OrganizationFilters
from jobly.services.organizations import OrganizationRepository
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)

ACME = {
    "handle": "acme",
    "name": "Acme",
    "description": "Anvils",
    "num_employees": 12,
    "logo_url": "http://acme.img",
}


def _organization_row(**overrides):
    return {**ACME, **overrides}


def _joined_row(posting_id=None, title=None, salary=None, equity=None):
    return {
        **ACME,
        "posting_id": posting_id,
        "posting_title": title,
        "posting_salary": salary,
        "posting_equity": equity,
    }


def test_create_inserts_after_duplicate_check(fake_db_factory) -> None:
    db = fake_db_factory(None, _organization_row())
    repository = OrganizationRepository(db)

    created = asyncio.run(repository.create(ACME))

    assert created == ACME
    assert db.transactions == 1
    assert len(db.calls) == 2
    assert db.calls[0][1] == ("acme",)
    assert "INSERT INTO organizations" in db.calls[1][0]
    assert db.calls[1][1] == ("acme", "Acme", "Anvils", 12, "http://acme.img")


def test_create_accepts_camel_case_optional_fields(fake_db_factory) -> None:
    db = fake_db_factory(None, _organization_row())
    repository = OrganizationRepository(db)

    asyncio.run(
        repository.create(
            {"handle": "acme", "name": "Acme", "description": "Anvils", "numEmployees": 12, "logoUrl": "x"}
        )
    )

    assert db.calls[1][1] == ("acme", "Acme", "Anvils", 12, "x")


def test_create_rejects_duplicate_handle_without_insert(fake_db_factory) -> None:
    db = fake_db_factory({"handle": "acme"})
    repository = OrganizationRepository(db)

    with pytest.raises(RepositoryConflictError, match="duplicate organization: acme"):
        asyncio.run(repository.create(ACME))

    assert len(db.calls) == 1


def _unique_violation(constraint_name: str) -> pg_exc.UniqueViolationError:
    exc = pg_exc.UniqueViolationError("duplicate key value violates unique constraint")
    exc.constraint_name = constraint_name
    return exc


def test_create_reports_primary_key_violation_as_conflict(fake_db_factory) -> None:
    db = fake_db_factory(None, _unique_violation("organizations_pkey"))
    repository = OrganizationRepository(db)

    with pytest.raises(RepositoryConflictError, match="duplicate organization: acme"):
        asyncio.run(repository.create(ACME))


def test_create_passes_other_unique_violations_through(fake_db_factory) -> None:
    db = fake_db_factory(None, _unique_violation("organizations_name_key"))
    repository = OrganizationRepository(db)

    with pytest.raises(pg_exc.UniqueViolationError) as excinfo:
        asyncio.run(repository.create({**ACME, "handle": "newco"}))

    assert excinfo.value.constraint_name == "organizations_name_key"


def test_list_without_filters_orders_by_name(fake_db_factory) -> None:
    db = fake_db_factory([_organization_row(), _organization_row(handle="zeta", name="Zeta")])
    repository = OrganizationRepository(db)

    rows = asyncio.run(repository.list())

    assert [row["handle"] for row in rows] == ["acme", "zeta"]
    sql, args = db.calls[0]
    assert "WHERE" not in sql
    assert "ORDER BY name" in sql
    assert args == ()


def test_list_binds_filter_values_in_order(fake_db_factory) -> None:
    db = fake_db_factory([])
    repository = OrganizationRepository(db)

    asyncio.run(repository.list(OrganizationFilters(name="ac", min_employees=1, max_employees=20)))

    sql, args = db.calls[0]
    assert "WHERE name ILIKE $1 AND num_employees >= $2 AND num_employees <= $3" in sql
    assert args == ("%ac%", 1, 20)


def test_list_rejects_inverted_range_before_querying(fake_db_factory) -> None:
    db = fake_db_factory()
    repository = OrganizationRepository(db)

    with pytest.raises(RepositoryValidationError):
        asyncio.run(repository.list(OrganizationFilters(min_employees=10, max_employees=5)))

    assert db.calls == []


def test_get_without_postings_returns_empty_list(fake_db_factory) -> None:
    db = fake_db_factory([_joined_row()])
    repository = OrganizationRepository(db)

    organization = asyncio.run(repository.get("acme"))

    assert organization == {**ACME, "postings": []}
    assert "LEFT JOIN postings" in db.calls[0][0]


def test_get_embeds_postings(fake_db_factory) -> None:
    db = fake_db_factory(
        [
            _joined_row(1, "Engineer", 100, None),
            _joined_row(2, "Designer", None, "0.05"),
        ]
    )
    repository = OrganizationRepository(db)

    organization = asyncio.run(repository.get("acme"))

    assert organization["postings"] == [
        {"id": 1, "title": "Engineer", "salary": 100, "equity": None},
        {"id": 2, "title": "Designer", "salary": None, "equity": "0.05"},
    ]


def test_get_missing_handle_raises_not_found(fake_db_factory) -> None:
    repository = OrganizationRepository(fake_db_factory([]))

    with pytest.raises(RepositoryNotFoundError, match="organization not found: nope"):
        asyncio.run(repository.get("nope"))


def test_update_scopes_handle_after_set_values(fake_db_factory) -> None:
    db = fake_db_factory(_organization_row(name="Acme Corp", num_employees=40))
    repository = OrganizationRepository(db)

    updated = asyncio.run(repository.update("acme", {"name": "Acme Corp", "numEmployees": 40}))

    assert updated["name"] == "Acme Corp"
    sql, args = db.calls[0]
    assert 'SET "name"=$1, "num_employees"=$2' in sql
    assert "WHERE handle = $3" in sql
    assert args == ("Acme Corp", 40, "acme")


def test_update_same_payload_twice_issues_same_statement(fake_db_factory) -> None:
    db = fake_db_factory(_organization_row(), _organization_row())
    repository = OrganizationRepository(db)

    first = asyncio.run(repository.update("acme", {"logo_url": None}))
    second = asyncio.run(repository.update("acme", {"logo_url": None}))

    assert first == second
    assert db.calls[0] == db.calls[1]


def test_update_rejects_empty_payload_and_handle_change(fake_db_factory) -> None:
    db = fake_db_factory()
    repository = OrganizationRepository(db)

    with pytest.raises(RepositoryValidationError, match="no data to update"):
        asyncio.run(repository.update("acme", {}))
    with pytest.raises(RepositoryValidationError, match="handle cannot be updated"):
        asyncio.run(repository.update("acme", {"handle": "other"}))

    assert db.calls == []


def test_update_missing_handle_raises_not_found(fake_db_factory) -> None:
    repository = OrganizationRepository(fake_db_factory(None))

    with pytest.raises(RepositoryNotFoundError):
        asyncio.run(repository.update("nope", {"name": "x"}))


def test_remove(fake_db_factory) -> None:
    db = fake_db_factory({"handle": "acme"}, None)
    repository = OrganizationRepository(db)

    assert asyncio.run(repository.remove("acme")) is None
    assert db.calls[0][1] == ("acme",)

    with pytest.raises(RepositoryNotFoundError, match="organization not found: acme"):
        asyncio.run(repository.remove("acme"))
