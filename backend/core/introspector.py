"""
Schema introspector — reverse-engineers a live database into TableMetadata.

Default backend shells out to the Prisma CLI (`prisma db pull`) against a
throwaway schema file, then parses the file Prisma rewrote. The `sqlalchemy`
backend reflects in-process instead (see core.db_connector.reflect_schema).
"""
import contextlib
import logging
import os
import shlex
import subprocess
import tempfile
from typing import Optional

from config import settings
from core.db_connector import detect_dialect, reflect_schema, sqlite_path
from core.errors import IntrospectionError
from core.prisma_schema import parse_schema, to_table_metadata
from models.table import TableMetadata

logger = logging.getLogger(__name__)

# npm config leaking from a parent `npm run` makes npx print noise or refuse to start
_NPM_ENV_NOISE = (
    "npm_config_npm_globalconfig",
    "npm_config_verify_deps_before_run",
    "npm_config__jsr_registry",
)


def introspect(url: str) -> list[TableMetadata]:
    """Return metadata for every table behind `url`. Never returns partial results."""
    if settings.INTROSPECTION_BACKEND == "sqlalchemy":
        detect_dialect(url)
        try:
            return reflect_schema(url)
        except Exception as e:
            raise IntrospectionError(f"Failed to introspect database: {e}") from e
    return introspect_with_prisma(url)


def get_table_meta(url: str, table_name: str) -> Optional[TableMetadata]:
    tables = introspect(url)
    return next((t for t in tables if t.name == table_name), None)


def build_datasource_block(url: str) -> str:
    provider = detect_dialect(url)
    connection_string = url
    if provider == "sqlite":
        path = sqlite_path(url)
        connection_string = path if path.startswith("file:") else f"file:{path}"
    elif url.startswith("mariadb://"):
        connection_string = "mysql://" + url.removeprefix("mariadb://")
    return (
        "datasource db {\n"
        f'  provider = "{provider}"\n'
        f'  url      = "{connection_string}"\n'
        "}\n"
    )


def introspect_with_prisma(url: str) -> list[TableMetadata]:
    schema_content = build_datasource_block(url)   # unsupported dialects fail here, before any I/O

    fd, schema_path = tempfile.mkstemp(prefix="prisma-schema-", suffix=".prisma")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(schema_content)

        _run_db_pull(schema_path)

        with open(schema_path, encoding="utf-8") as f:
            introspected = f.read()
        tables = to_table_metadata(parse_schema(introspected))
        logger.info("Introspected %d tables via Prisma", len(tables))
        return tables
    except Exception as e:
        raise IntrospectionError(f"Failed to introspect database: {e}") from e
    finally:
        with contextlib.suppress(OSError):
            os.remove(schema_path)


def _run_db_pull(schema_path: str) -> None:
    cmd = shlex.split(settings.PRISMA_COMMAND) + ["db", "pull", f"--schema={schema_path}", "--force"]
    env = {k: v for k, v in os.environ.items() if k not in _NPM_ENV_NOISE}
    logger.debug("Running %s", " ".join(cmd))
    proc = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        env=env,
        timeout=settings.INTROSPECTION_TIMEOUT_SECONDS,
        check=False,
    )
    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise RuntimeError(f"prisma db pull exited with {proc.returncode}: {detail}")

    stderr = proc.stderr or ""
    if stderr and "warning" not in stderr and "npm warn" not in stderr:
        logger.warning("Prisma introspection warnings: %s", stderr.strip())
