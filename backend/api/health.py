"""GET /api/health — introspection tool and connection registry check."""
import logging
import shlex
import subprocess
from fastapi import APIRouter, Depends

from api.deps import get_registry
from config import settings
from core.db_connector import ConnectionRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(registry: ConnectionRegistry = Depends(get_registry)):
    introspection = _check_introspection_tool()
    overall = "ok" if introspection["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "introspection": introspection,
            "connections":   {"status": "up", "cached": len(registry)},
        },
    }


def _check_introspection_tool() -> dict:
    if settings.INTROSPECTION_BACKEND == "sqlalchemy":
        return {"status": "up", "backend": "sqlalchemy"}
    try:
        proc = subprocess.run(
            shlex.split(settings.PRISMA_COMMAND) + ["--version"],
            capture_output=True, text=True, timeout=60, check=True,
        )
        version = proc.stdout.strip().splitlines()[0] if proc.stdout.strip() else "unknown"
        return {"status": "up", "backend": "prisma", "version": version}
    except (OSError, subprocess.SubprocessError) as e:
        return {"status": "down", "backend": "prisma", "error": str(e)}
