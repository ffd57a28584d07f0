"""
Relationship loader — nests related rows into a page of records.

Many-to-one: every FK column gets its referenced row under the column name with a
trailing "_id" (or camelCase "Id") stripped. Columns whose derived name is already a
column of the table keep their scalar value and are not nested. One-to-many: every
table whose FKs point back at this table gets its matching rows, merged across all of
those FK columns, under that table's name.

Lookups are batched: one IN query per relation for the whole page, not per row.
"""
import logging
from typing import Any

from sqlalchemy import column, select, table
from sqlalchemy.engine import Connection

from models.records import Record
from models.table import TableMetadata

logger = logging.getLogger(__name__)


def nested_field_name(fk_column: str) -> str:
    """customer_id → customer, authorId → author; other columns are kept as-is."""
    if fk_column.endswith("_id") and len(fk_column) > 3:
        return fk_column[:-3]
    if fk_column.endswith("Id") and len(fk_column) > 2 and fk_column[-3].islower():
        return fk_column[:-2]
    return fk_column


def load_relations(
    conn: Connection,
    meta: TableMetadata,
    rows: list[Record],
    all_tables: list[TableMetadata],
) -> list[Record]:
    if not rows:
        return rows
    by_name = {t.name: t for t in all_tables}
    own_columns = set(meta.column_names)
    result = [dict(r) for r in rows]

    # 1) many-to-one
    for col in meta.columns:
        fk = col.foreign_key
        if fk is None or fk.table not in by_name:
            continue
        field = nested_field_name(col.name)
        if field in own_columns:
            logger.debug("Not nesting %s.%s: %r is a column", meta.name, col.name, field)
            continue
        target = by_name[fk.table]
        if target.get_column(fk.column) is None:
            continue
        keys = {r.get(col.name) for r in result} - {None}
        related = _fetch_in(conn, target, fk.column, keys)
        index = {r[fk.column]: r for r in related}
        for r in result:
            r[field] = index.get(r.get(col.name))

    # 2) one-to-many, merged per child table
    for other in all_tables:
        back_refs = [
            col for col in other.columns
            if col.foreign_key is not None
            and col.foreign_key.table == meta.name
            and meta.get_column(col.foreign_key.column) is not None
        ]
        if not back_refs:
            continue
        children: list[list[Record]] = [[] for _ in result]
        seen: list[set] = [set() for _ in result]
        for col in back_refs:
            parent_col = col.foreign_key.column
            keys = {r.get(parent_col) for r in result} - {None}
            grouped: dict[Any, list[Record]] = {}
            for child in _fetch_in(conn, other, col.name, keys):
                grouped.setdefault(child[col.name], []).append(child)
            for i, r in enumerate(result):
                for child in grouped.get(r.get(parent_col), []):
                    identity = _row_identity(other, child)
                    if identity not in seen[i]:
                        seen[i].add(identity)
                        children[i].append(child)
        for r, found in zip(result, children):
            r[other.name] = found

    return result


def _row_identity(meta: TableMetadata, row: Record):
    pk = meta.primary_key
    if pk in row and row[pk] is not None:
        return ("pk", row[pk])
    return ("row", tuple(sorted((k, repr(v)) for k, v in row.items())))


def _fetch_in(conn: Connection, target: TableMetadata, key_column: str, keys: set) -> list[Record]:
    if not keys:
        return []
    tbl = table(target.name, *(column(c.name) for c in target.columns))
    stmt = select(tbl).where(tbl.c[key_column].in_(list(keys)))
    rows = [dict(r) for r in conn.execute(stmt).mappings()]
    logger.debug("Loaded %d related rows from %s", len(rows), target.name)
    return rows
