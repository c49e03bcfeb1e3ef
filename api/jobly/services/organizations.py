from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc
from opentelemetry import trace

from jobly.core.db import Database, get_database
from jobly.services.filters import OrganizationFilters, build_organization_where
from jobly.services.repository import RepositoryConflictError, RepositoryNotFoundError
from jobly.services.sql import sql_for_partial_update

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ORGANIZATION_COLUMN_MAP = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}
ORGANIZATION_IMMUTABLE_FIELDS = ("handle",)
ORGANIZATION_COLUMNS_SQL = "handle, name, description, num_employees, logo_url"
ORGANIZATION_PRIMARY_KEY_CONSTRAINT = "organizations_pkey"


class OrganizationRepository:
    """Create/list/get/update/remove for organizations."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a new organization.

        The duplicate check and the insert share one transaction; a unique
        violation from a concurrent insert is reported the same way as the
        pre-check.
        """
        handle = data["handle"]
        with tracer.start_as_current_span("organizations.create") as span:
            span.set_attribute("organization.handle", handle)
            try:
                async with self._db.transaction() as conn:
                    existing = await conn.fetchrow(
                        """
                        SELECT handle
                        FROM organizations
                        WHERE handle = $1
                        """,
                        handle,
                    )
                    if existing is not None:
                        raise RepositoryConflictError(f"duplicate organization: {handle}")

                    row = await conn.fetchrow(
                        f"""
                        INSERT INTO organizations (handle, name, description, num_employees, logo_url)
                        VALUES ($1, $2, $3, $4, $5)
                        RETURNING {ORGANIZATION_COLUMNS_SQL}
                        """,
                        handle,
                        data["name"],
                        data["description"],
                        _field(data, "num_employees", "numEmployees"),
                        _field(data, "logo_url", "logoUrl"),
                    )
            except pg_exc.UniqueViolationError as exc:
                if exc.constraint_name != ORGANIZATION_PRIMARY_KEY_CONSTRAINT:
                    raise
                raise RepositoryConflictError(f"duplicate organization: {handle}") from exc

        logger.info("organization created handle=%s", handle)
        return self._organization_row_to_dict(row)

    async def list(self, filters: OrganizationFilters | None = None) -> list[dict[str, Any]]:
        where = build_organization_where(filters)
        with tracer.start_as_current_span("organizations.list") as span:
            span.set_attribute("db.filter_count", len(where.values))
            rows = await self._db.fetch(
                f"""
                SELECT {ORGANIZATION_COLUMNS_SQL}
                FROM organizations{where.sql}
                ORDER BY name
                """,
                *where.values,
            )
        return [self._organization_row_to_dict(row) for row in rows]

    async def get(self, handle: str) -> dict[str, Any]:
        """Return the organization with its postings embedded.

        The LEFT JOIN yields one row with null posting columns when the
        organization has no postings; that row contributes no posting.
        """
        with tracer.start_as_current_span("organizations.get") as span:
            span.set_attribute("organization.handle", handle)
            rows = await self._db.fetch(
                """
                SELECT o.handle,
                       o.name,
                       o.description,
                       o.num_employees,
                       o.logo_url,
                       p.id AS posting_id,
                       p.title AS posting_title,
                       p.salary AS posting_salary,
                       p.equity AS posting_equity
                FROM organizations AS o
                LEFT JOIN postings AS p ON p.organization_handle = o.handle
                WHERE o.handle = $1
                ORDER BY p.id
                """,
                handle,
            )
        if not rows:
            raise RepositoryNotFoundError(f"organization not found: {handle}")

        organization = self._organization_row_to_dict(rows[0])
        organization["postings"] = [
            {
                "id": row["posting_id"],
                "title": row["posting_title"],
                "salary": row["posting_salary"],
                "equity": row["posting_equity"],
            }
            for row in rows
            if row["posting_id"] is not None
        ]
        return organization

    async def update(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial update; only the supplied fields change."""
        update = sql_for_partial_update(data, ORGANIZATION_COLUMN_MAP, immutable=ORGANIZATION_IMMUTABLE_FIELDS)
        with tracer.start_as_current_span("organizations.update") as span:
            span.set_attribute("organization.handle", handle)
            row = await self._db.fetchrow(
                f"""
                UPDATE organizations
                SET {update.set_cols}
                WHERE handle = ${update.next_index}
                RETURNING {ORGANIZATION_COLUMNS_SQL}
                """,
                *update.values,
                handle,
            )
        if row is None:
            raise RepositoryNotFoundError(f"organization not found: {handle}")

        logger.info("organization updated handle=%s columns=%s", handle, ",".join(update.columns))
        return self._organization_row_to_dict(row)

    async def remove(self, handle: str) -> None:
        with tracer.start_as_current_span("organizations.remove") as span:
            span.set_attribute("organization.handle", handle)
            row = await self._db.fetchrow(
                """
                DELETE
                FROM organizations
                WHERE handle = $1
                RETURNING handle
                """,
                handle,
            )
        if row is None:
            raise RepositoryNotFoundError(f"organization not found: {handle}")

        logger.info("organization removed handle=%s", handle)

    @staticmethod
    def _organization_row_to_dict(row: Mapping[str, Any] | asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "num_employees": row["num_employees"],
            "logo_url": row["logo_url"],
        }


def _field(data: Mapping[str, Any], name: str, alias: str) -> Any:
    if name in data:
        return data[name]
    return data.get(alias)


def get_organization_repository() -> OrganizationRepository:
    return OrganizationRepository(get_database())
