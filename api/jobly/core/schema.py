"""
DDL for the two persisted tables.

`organizations.handle` is the primary key (unique); `postings.organization_handle`
references it and postings are removed together with their organization.
"""

from __future__ import annotations

ORGANIZATIONS_TABLE_SQL = """
create table if not exists organizations (
  handle varchar(25) primary key check (handle = lower(handle)),
  name text unique not null,
  num_employees integer check (num_employees >= 0),
  description text not null,
  logo_url text
);
"""

POSTINGS_TABLE_SQL = """
create table if not exists postings (
  id serial primary key,
  title text not null,
  salary integer check (salary >= 0),
  equity numeric check (equity >= 0 and equity <= 1.0),
  organization_handle varchar(25) not null
    references organizations on delete cascade
);

create index if not exists postings_organization_handle_idx on postings (organization_handle);
"""

DROP_TABLES_SQL = """
drop table if exists postings;
drop table if exists organizations;
"""


def render_schema(*, drop_existing: bool = False) -> str:
    parts = ["-- jobly schema"]
    if drop_existing:
        parts.append(DROP_TABLES_SQL.strip())
    parts.append(ORGANIZATIONS_TABLE_SQL.strip())
    parts.append(POSTINGS_TABLE_SQL.strip())
    return "\n\n".join(parts) + "\n"
