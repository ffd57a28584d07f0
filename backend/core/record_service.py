"""
Generic record service — list/get/create/update/delete against any introspected table.

Table and column identifiers are only ever taken from TableMetadata (the closed
set produced by introspection) and quoted by SQLAlchemy; values are always bound.
Driver errors are converted into core.errors types so every operation fails the
same way.
"""
import logging
import math
from typing import Any, Optional, Union

from sqlalchemy import column, delete, func, insert, select, table, text, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import TableClause

from config import settings
from core.errors import (
    ForbiddenError, InvalidRecordError, InvalidRequestError, QueryError,
    RecordNotFoundError, RecordWriteError, TableNotFoundError,
)
from core.relationship_loader import load_relations
from models.records import DeleteResult, ListRecordsParams, ListRecordsResult, MutationResult, Record
from models.table import INTEGER_TYPES, TableMetadata

logger = logging.getLogger(__name__)

RecordId = Union[int, str]


def find_table(tables: list[TableMetadata], table_name: str) -> TableMetadata:
    meta = next((t for t in tables if t.name == table_name), None)
    if meta is None:
        raise TableNotFoundError(table_name)
    return meta


def table_clause(meta: TableMetadata) -> TableClause:
    return table(meta.name, *(column(c.name) for c in meta.columns))


def coerce_id(meta: TableMetadata, record_id: RecordId) -> RecordId:
    """Path ids arrive as strings; integer keys are compared as integers."""
    col = meta.get_column(meta.primary_key)
    if col is not None and col.type in INTEGER_TYPES and isinstance(record_id, str):
        try:
            return int(record_id)
        except ValueError:
            raise InvalidRecordError(f"Invalid id '{record_id}' for integer key '{col.name}'")
    return record_id


def _pk_column(meta: TableMetadata, tbl: TableClause):
    pk = meta.primary_key
    if pk not in tbl.c:
        raise InvalidRecordError(f'Table "{meta.name}" has no primary key column')
    return tbl.c[pk]


def _check_columns(meta: TableMetadata, names) -> None:
    known = set(meta.column_names)
    for name in names:
        if name not in known:
            raise InvalidRecordError(f'Unknown column "{name}" for table "{meta.name}"')


def _driver_message(e: SQLAlchemyError) -> str:
    return str(getattr(e, "orig", None) or e)


def _select_by_pk(conn: Connection, tbl: TableClause, pk_col, key) -> Optional[Record]:
    row = conn.execute(select(tbl).where(pk_col == key)).mappings().first()
    return dict(row) if row is not None else None


# ── Reads ────────────────────────────────────────────────────────────────────

def list_records(
    engine: Engine,
    meta: TableMetadata,
    params: ListRecordsParams,
    all_tables: Optional[list[TableMetadata]] = None,
) -> ListRecordsResult:
    """One page of rows plus total count. Pass `all_tables` to nest related rows."""
    if params.sort_by and meta.get_column(params.sort_by) is None:
        raise InvalidRecordError(f'Unknown sort column "{params.sort_by}"')

    tbl = table_clause(meta)
    try:
        with engine.connect() as conn:
            total = conn.execute(select(func.count()).select_from(tbl)).scalar_one()
            stmt = select(tbl).limit(params.limit).offset(params.offset)
            if params.sort_by:
                col = tbl.c[params.sort_by]
                stmt = stmt.order_by(col.desc() if params.sort_order == "desc" else col.asc())
            rows = [dict(r) for r in conn.execute(stmt).mappings()]
            if all_tables is not None:
                rows = load_relations(conn, meta, rows, all_tables)
    except SQLAlchemyError as e:
        logger.error("Listing %s failed: %s", meta.name, e)
        raise QueryError(_driver_message(e)) from e

    return ListRecordsResult(
        data=rows,
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=math.ceil(total / params.limit),
    )


def get_record(
    engine: Engine,
    meta: TableMetadata,
    record_id: RecordId,
    all_tables: Optional[list[TableMetadata]] = None,
) -> Record:
    tbl = table_clause(meta)
    pk_col = _pk_column(meta, tbl)
    key = coerce_id(meta, record_id)
    try:
        with engine.connect() as conn:
            row = _select_by_pk(conn, tbl, pk_col, key)
            if row is not None and all_tables is not None:
                row = load_relations(conn, meta, [row], all_tables)[0]
    except SQLAlchemyError as e:
        logger.error("Fetching %s[%s] failed: %s", meta.name, record_id, e)
        raise QueryError(_driver_message(e)) from e
    if row is None:
        raise RecordNotFoundError()
    return row


# ── Writes ───────────────────────────────────────────────────────────────────

def create_record(engine: Engine, meta: TableMetadata, data: dict[str, Any]) -> MutationResult:
    if not data:
        raise InvalidRecordError("At least one field is required")
    _check_columns(meta, data)

    tbl = table_clause(meta)
    pk = meta.primary_key
    pk_col = tbl.c[pk] if pk in tbl.c else None
    pk_meta = meta.get_column(pk)
    try:
        with engine.begin() as conn:
            stmt = insert(tbl).values(data)
            if conn.dialect.insert_returning:
                row = conn.execute(stmt.returning(*tbl.c)).mappings().first()
                row = dict(row) if row is not None else None
            else:
                result = conn.execute(stmt)
                key = data.get(pk)
                if key is None and pk_meta is not None and pk_meta.default_value == "autoincrement":
                    key = result.lastrowid
                row = None
                if pk_col is not None and key is not None:
                    row = _select_by_pk(conn, tbl, pk_col, key)
    except SQLAlchemyError as e:
        logger.warning("Insert into %s failed: %s", meta.name, e)
        raise RecordWriteError(_driver_message(e)) from e

    if row is None:
        # Server-generated key that cannot be read back; report what was written
        logger.info("Created record in %s; generated key not readable, echoing payload", meta.name)
        return MutationResult(success=True, message="Record created successfully", data=dict(data))
    logger.info("Created record in %s", meta.name)
    return MutationResult(success=True, message="Record created successfully", data=row)


def update_record(engine: Engine, meta: TableMetadata, record_id: RecordId,
                  data: dict[str, Any]) -> MutationResult:
    if not data:
        raise InvalidRecordError("At least one field is required")
    pk = meta.primary_key
    changes = {k: v for k, v in data.items() if k != pk}
    if not changes:
        raise InvalidRecordError("No fields to update")
    _check_columns(meta, changes)

    tbl = table_clause(meta)
    pk_col = _pk_column(meta, tbl)
    key = coerce_id(meta, record_id)
    try:
        with engine.begin() as conn:
            stmt = update(tbl).where(pk_col == key).values(changes)
            if conn.dialect.update_returning:
                row = conn.execute(stmt.returning(*tbl.c)).mappings().first()
                row = dict(row) if row is not None else None
            else:
                conn.execute(stmt)
                row = _select_by_pk(conn, tbl, pk_col, key)
    except SQLAlchemyError as e:
        logger.warning("Update of %s[%s] failed: %s", meta.name, record_id, e)
        raise RecordWriteError(_driver_message(e)) from e

    if row is None:
        raise RecordNotFoundError()
    logger.info("Updated %s[%s]", meta.name, record_id)
    return MutationResult(success=True, message="Record updated successfully", data=row)


def delete_record(engine: Engine, meta: TableMetadata, record_id: RecordId) -> DeleteResult:
    tbl = table_clause(meta)
    pk_col = _pk_column(meta, tbl)
    key = coerce_id(meta, record_id)
    try:
        with engine.begin() as conn:
            stmt = delete(tbl).where(pk_col == key)
            if conn.dialect.delete_returning:
                found = conn.execute(stmt.returning(pk_col)).first() is not None
            else:
                found = conn.execute(stmt).rowcount > 0
    except SQLAlchemyError as e:
        logger.warning("Delete of %s[%s] failed: %s", meta.name, record_id, e)
        raise RecordWriteError(_driver_message(e)) from e

    if not found:
        raise RecordNotFoundError()
    logger.info("Deleted %s[%s]", meta.name, record_id)
    return DeleteResult(success=True, message="Record deleted successfully", deleted_id=key)


def execute_raw_query(engine: Engine, query: str) -> list[Record]:
    """Run arbitrary SQL. Disabled unless ALLOW_RAW_QUERIES is set."""
    if not settings.ALLOW_RAW_QUERIES:
        raise ForbiddenError("Raw queries are disabled")
    try:
        with engine.begin() as conn:
            result = conn.execute(text(query))
            return [dict(r) for r in result.mappings()] if result.returns_rows else []
    except SQLAlchemyError as e:
        raise InvalidRequestError(_driver_message(e)) from e
