"""/api/connections — cached connection registry management and connection-string building."""
from fastapi import APIRouter, Depends

from api.deps import get_db_context, get_registry
from core.db_connector import ConnectionRegistry, detect_dialect, mask_url
from core.errors import RecordNotFoundError
from models.connection import ConnectionRequest, DbContext

router = APIRouter()


@router.get("/connections")
def get_connections(registry: ConnectionRegistry = Depends(get_registry)):
    result = [
        {"url": mask_url(url), "dialect": detect_dialect(url), "status": "cached"}
        for url in registry.cached_urls()
    ]
    return {"success": True, "data": result, "count": len(result)}


@router.get("/connections/ping")
def ping_connection(ctx: DbContext = Depends(get_db_context),
                    registry: ConnectionRegistry = Depends(get_registry)):
    reachable = registry.ping(ctx.url)
    return {"success": True, "data": {"url": mask_url(ctx.url), "reachable": reachable}}


@router.delete("/connections")
def delete_connection(ctx: DbContext = Depends(get_db_context),
                      registry: ConnectionRegistry = Depends(get_registry)):
    if not registry.disconnect(ctx.url):
        raise RecordNotFoundError("Connection not found")
    return {"success": True, "message": "Disconnected successfully"}


@router.post("/connections/build")
def build_connection(req: ConnectionRequest):
    return {"success": True, "url": req.build_connection_url()}
