"""/api/tables — schema listing and generic record CRUD for any introspected table."""
import logging
from typing import Any, Union

from fastapi import APIRouter, Body, Depends, Query

from api.deps import encode, get_db_context, get_list_params, get_registry
from core.db_connector import ConnectionRegistry
from core.errors import InvalidRequestError
from core.introspector import introspect
from core import record_service
from models.connection import DbContext
from models.records import ListRecordsParams

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_body(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict) or not payload:
        raise InvalidRequestError("Request body is required")
    return payload


@router.get("/tables")
def list_tables(ctx: DbContext = Depends(get_db_context)):
    tables = introspect(ctx.url)
    return {"success": True, "data": encode(tables), "count": len(tables)}


@router.get("/tables/{table_name}")
def list_records(
    table_name: str,
    ctx: DbContext = Depends(get_db_context),
    params: ListRecordsParams = Depends(get_list_params),
    relations: bool = Query(False, description="Nest related rows"),
    registry: ConnectionRegistry = Depends(get_registry),
):
    engine = registry.resolve(ctx.url)
    tables = introspect(ctx.url)
    meta = record_service.find_table(tables, table_name)
    result = record_service.list_records(engine, meta, params, tables if relations else None)
    return encode({"success": True, **result.model_dump(by_alias=True)})


@router.post("/tables/{table_name}", status_code=201)
def create_record(
    table_name: str,
    payload: Union[dict[str, Any], list, None] = Body(None),
    ctx: DbContext = Depends(get_db_context),
    registry: ConnectionRegistry = Depends(get_registry),
):
    data = _require_body(payload)
    engine = registry.resolve(ctx.url)
    meta = record_service.find_table(introspect(ctx.url), table_name)
    result = record_service.create_record(engine, meta, data)
    return encode(result.model_dump())


@router.get("/tables/{table_name}/meta")
def get_table_meta(table_name: str, ctx: DbContext = Depends(get_db_context)):
    meta = record_service.find_table(introspect(ctx.url), table_name)
    return {"success": True, "data": encode(meta)}


@router.get("/tables/{table_name}/{record_id}")
def get_record(
    table_name: str,
    record_id: str,
    ctx: DbContext = Depends(get_db_context),
    relations: bool = Query(False, description="Nest related rows"),
    registry: ConnectionRegistry = Depends(get_registry),
):
    engine = registry.resolve(ctx.url)
    tables = introspect(ctx.url)
    meta = record_service.find_table(tables, table_name)
    row = record_service.get_record(engine, meta, record_id, tables if relations else None)
    return encode({"success": True, "data": row})


@router.api_route("/tables/{table_name}/{record_id}", methods=["PUT", "PATCH"])
def update_record(
    table_name: str,
    record_id: str,
    payload: Union[dict[str, Any], list, None] = Body(None),
    ctx: DbContext = Depends(get_db_context),
    registry: ConnectionRegistry = Depends(get_registry),
):
    data = _require_body(payload)
    engine = registry.resolve(ctx.url)
    meta = record_service.find_table(introspect(ctx.url), table_name)
    result = record_service.update_record(engine, meta, record_id, data)
    return encode(result.model_dump())


@router.delete("/tables/{table_name}/{record_id}")
def delete_record(
    table_name: str,
    record_id: str,
    ctx: DbContext = Depends(get_db_context),
    registry: ConnectionRegistry = Depends(get_registry),
):
    engine = registry.resolve(ctx.url)
    meta = record_service.find_table(introspect(ctx.url), table_name)
    result = record_service.delete_record(engine, meta, record_id)
    return encode(result.model_dump(by_alias=True))
