"""Shared FastAPI dependencies and response encoding for the API routers."""
import base64
from typing import Any, Optional

from fastapi import Query, Request
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from core.db_connector import ConnectionRegistry
from core.errors import InvalidRequestError, first_error_message
from models.connection import DbContext
from models.records import ListRecordsParams

_LIST_PARAM_KEYS = ("page", "limit", "sortBy", "sortOrder")


def _b64(raw) -> str:
    return base64.b64encode(bytes(raw)).decode("ascii")


def encode(payload: Any) -> Any:
    """jsonable_encoder that also copes with binary column values."""
    return jsonable_encoder(payload, custom_encoder={bytes: _b64, memoryview: _b64})


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_db_context(url: Optional[str] = Query(None, description="Database connection string")) -> DbContext:
    try:
        return DbContext(url=url or "")
    except ValidationError as e:
        raise InvalidRequestError(first_error_message(e))


def get_list_params(request: Request) -> ListRecordsParams:
    raw = {k: request.query_params[k] for k in _LIST_PARAM_KEYS if k in request.query_params}
    try:
        return ListRecordsParams.model_validate(raw)
    except ValidationError as e:
        raise InvalidRequestError(first_error_message(e))
