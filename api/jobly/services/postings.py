from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc
from opentelemetry import trace

from jobly.core.db import Database, get_database
from jobly.services.filters import PostingFilters, build_posting_where
from jobly.services.repository import RepositoryNotFoundError
from jobly.services.sql import sql_for_partial_update

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# The owning organization is fixed at creation; it is never remapped through
# the partial-update path.
POSTING_COLUMN_MAP: dict[str, str] = {}
POSTING_IMMUTABLE_FIELDS = ("id", "organization_handle", "organizationHandle")
POSTING_COLUMNS_SQL = "id, title, salary, equity, organization_handle"
POSTING_ORGANIZATION_FOREIGN_KEY_CONSTRAINT = "postings_organization_handle_fkey"


class PostingRepository:
    """Create/list/get/update/remove for postings."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a posting under an existing organization.

        The parent row is locked with FOR KEY SHARE for the rest of the
        transaction, so it cannot be deleted between the check and the insert.
        """
        organization_handle = data.get("organization_handle") or data.get("organizationHandle")
        with tracer.start_as_current_span("postings.create") as span:
            span.set_attribute("organization.handle", str(organization_handle))
            try:
                async with self._db.transaction() as conn:
                    parent = await conn.fetchrow(
                        """
                        SELECT handle
                        FROM organizations
                        WHERE handle = $1
                        FOR KEY SHARE
                        """,
                        organization_handle,
                    )
                    if parent is None:
                        raise RepositoryNotFoundError(f"organization not found: {organization_handle}")

                    row = await conn.fetchrow(
                        f"""
                        INSERT INTO postings (title, salary, equity, organization_handle)
                        VALUES ($1, $2, $3, $4)
                        RETURNING {POSTING_COLUMNS_SQL}
                        """,
                        data["title"],
                        data.get("salary"),
                        data.get("equity"),
                        organization_handle,
                    )
            except pg_exc.ForeignKeyViolationError as exc:
                if exc.constraint_name != POSTING_ORGANIZATION_FOREIGN_KEY_CONSTRAINT:
                    raise
                raise RepositoryNotFoundError(f"organization not found: {organization_handle}") from exc

        posting = self._posting_row_to_dict(row)
        logger.info("posting created id=%s organization=%s", posting["id"], organization_handle)
        return posting

    async def list(self, filters: PostingFilters | None = None) -> list[dict[str, Any]]:
        where = build_posting_where(filters)
        with tracer.start_as_current_span("postings.list") as span:
            span.set_attribute("db.filter_count", len(where.values))
            rows = await self._db.fetch(
                f"""
                SELECT {POSTING_COLUMNS_SQL}
                FROM postings{where.sql}
                ORDER BY title
                """,
                *where.values,
            )
        return [self._posting_row_to_dict(row) for row in rows]

    async def get(self, posting_id: int) -> dict[str, Any]:
        with tracer.start_as_current_span("postings.get") as span:
            span.set_attribute("posting.id", posting_id)
            row = await self._db.fetchrow(
                f"""
                SELECT {POSTING_COLUMNS_SQL}
                FROM postings
                WHERE id = $1
                """,
                posting_id,
            )
        if row is None:
            raise RepositoryNotFoundError(f"posting not found: {posting_id}")
        return self._posting_row_to_dict(row)

    async def update(self, posting_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        update = sql_for_partial_update(data, POSTING_COLUMN_MAP, immutable=POSTING_IMMUTABLE_FIELDS)
        with tracer.start_as_current_span("postings.update") as span:
            span.set_attribute("posting.id", posting_id)
            row = await self._db.fetchrow(
                f"""
                UPDATE postings
                SET {update.set_cols}
                WHERE id = ${update.next_index}
                RETURNING {POSTING_COLUMNS_SQL}
                """,
                *update.values,
                posting_id,
            )
        if row is None:
            raise RepositoryNotFoundError(f"posting not found: {posting_id}")

        logger.info("posting updated id=%s columns=%s", posting_id, ",".join(update.columns))
        return self._posting_row_to_dict(row)

    async def remove(self, posting_id: int) -> None:
        with tracer.start_as_current_span("postings.remove") as span:
            span.set_attribute("posting.id", posting_id)
            row = await self._db.fetchrow(
                """
                DELETE
                FROM postings
                WHERE id = $1
                RETURNING id
                """,
                posting_id,
            )
        if row is None:
            raise RepositoryNotFoundError(f"posting not found: {posting_id}")

        logger.info("posting removed id=%s", posting_id)

    @staticmethod
    def _posting_row_to_dict(row: Mapping[str, Any] | asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": row["equity"],
            "organization_handle": row["organization_handle"],
        }


def get_posting_repository() -> PostingRepository:
    return PostingRepository(get_database())
