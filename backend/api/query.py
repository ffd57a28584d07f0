"""POST /api/query — opt-in raw SQL console (requires ALLOW_RAW_QUERIES)."""
import logging
from fastapi import APIRouter, Depends

from api.deps import encode, get_db_context, get_registry
from core.db_connector import ConnectionRegistry
from core.record_service import execute_raw_query
from models.connection import DbContext
from models.records import RawQueryRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/query")
def run_query(req: RawQueryRequest,
              ctx: DbContext = Depends(get_db_context),
              registry: ConnectionRegistry = Depends(get_registry)):
    engine = registry.resolve(ctx.url)
    rows = execute_raw_query(engine, req.query)
    logger.info("Raw query returned %d rows", len(rows))
    return encode({"success": True, "data": rows})
