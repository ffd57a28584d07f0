"""
Tabula — Database Admin Panel
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import auth, connections, health, pages, query, tables
from config import settings
from core.db_connector import ConnectionRegistry
from core.errors import AdminPanelError
from core.route_gate import RouteGateMiddleware

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("tabula")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Tabula starting up…")
    app.state.registry = ConnectionRegistry(max_size=settings.MAX_CACHED_CONNECTIONS)
    yield
    app.state.registry.dispose_all()
    logger.info("Tabula shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Tabula — Database Admin Panel",
    description="Schema-driven CRUD over PostgreSQL, MySQL/MariaDB and SQLite databases.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RouteGateMiddleware)


# ── Error handling ────────────────────────────────────────────────────────────
@app.exception_handler(AdminPanelError)
async def admin_panel_error_handler(request: Request, exc: AdminPanelError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"success": False, "message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        {"success": False, "message": message.removeprefix("Value error, ")},
        status_code=400,
    )


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,      prefix="/api")
app.include_router(auth.router,        prefix="/api")
app.include_router(tables.router,      prefix="/api")
app.include_router(connections.router, prefix="/api")
app.include_router(query.router,       prefix="/api")
app.include_router(pages.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
