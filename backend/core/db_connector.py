"""
Database connector — dialect detection, SQLAlchemy engine registry and schema reflection.
Supports PostgreSQL, MySQL/MariaDB and SQLite connection strings as typed by the user.
"""
import logging
import threading
from typing import Literal, Optional

from cachetools import LRUCache
from sqlalchemy import create_engine, inspect, text, types as sqltypes
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from core.errors import UnsupportedDialectError
from models.table import TableMetadata, ColumnMetadata, ForeignKeyRef, Relation

logger = logging.getLogger(__name__)

Dialect = Literal["postgresql", "mysql", "sqlite"]

_DRIVERS = {
    "postgresql": "postgresql+psycopg2",
    "mysql": "mysql+pymysql",
}


def detect_dialect(url: str) -> Dialect:
    """Classify a connection string by literal prefix/suffix."""
    if url.startswith("postgres://") or url.startswith("postgresql://"):
        return "postgresql"
    if url.startswith("mysql://") or url.startswith("mariadb://"):
        return "mysql"
    if url.startswith("sqlite://") or url.endswith(".sqlite") or url.endswith(".db"):
        return "sqlite"
    raise UnsupportedDialectError(f"Unsupported database dialect for URL: {url}")


def sqlite_path(url: str) -> str:
    return url.removeprefix("sqlite://")


def to_sqlalchemy_url(url: str) -> str:
    dialect = detect_dialect(url)
    if dialect == "sqlite":
        return f"sqlite:///{sqlite_path(url)}"
    _, rest = url.split("://", 1)
    return f"{_DRIVERS[dialect]}://{rest}"


def create_engine_for_url(url: str) -> Engine:
    """Build (but do not connect) an engine; dead connections surface on first use."""
    return create_engine(to_sqlalchemy_url(url), pool_pre_ping=True)


def mask_url(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url   # bare SQLite paths are not URLs


# ── Engine registry ──────────────────────────────────────────────────────────

class _EngineCache(LRUCache):
    """LRU map of connection string → Engine that disposes engines it evicts."""

    def popitem(self):
        url, engine = super().popitem()
        logger.info("Evicting idle connection %s", mask_url(url))
        engine.dispose()
        return url, engine


class ConnectionRegistry:
    """
    At most one engine per distinct connection string.
    Owned by the application (see main.lifespan) and handed to routes as a dependency.
    """

    def __init__(self, max_size: int = 16):
        self._engines = _EngineCache(maxsize=max_size)
        self._lock = threading.Lock()

    def resolve(self, url: str) -> Engine:
        detect_dialect(url)
        with self._lock:
            engine = self._engines.get(url)
            if engine is None:
                engine = create_engine_for_url(url)
                self._engines[url] = engine
                logger.info("Opened connection pool for %s", mask_url(url))
            return engine

    def disconnect(self, url: str) -> bool:
        with self._lock:
            engine = self._engines.pop(url, None)
        if engine is None:
            return False
        engine.dispose()
        logger.info("Disconnected %s", mask_url(url))
        return True

    def ping(self, url: str) -> bool:
        """Round-trip SELECT 1 on the cached engine."""
        engine = self.resolve(url)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Ping failed for %s: %s", mask_url(url), e)
            return False

    def cached_urls(self) -> list[str]:
        with self._lock:
            return list(self._engines.keys())

    def dispose_all(self) -> None:
        with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            engine.dispose()

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._engines

    def __len__(self) -> int:
        with self._lock:
            return len(self._engines)


# ── In-process reflection (INTROSPECTION_BACKEND=sqlalchemy) ─────────────────

def reflect_schema(url: str) -> list[TableMetadata]:
    """
    Reflect all tables from the target database with sqlalchemy.inspect.
    Returns TableMetadata with columns, FK annotations and belongsTo/hasMany relations.
    """
    dialect = detect_dialect(url)
    engine = create_engine_for_url(url)
    try:
        insp = inspect(engine)
        schema_name = _get_default_schema(dialect)
        table_names = insp.get_table_names(schema=schema_name)
        logger.info("Discovered %d tables in %s", len(table_names), mask_url(url))

        tables: list[TableMetadata] = []
        for table_name in table_names:
            pk_cols = insp.get_pk_constraint(table_name, schema=schema_name).get("constrained_columns", [])
            fk_map: dict[str, ForeignKeyRef] = {}
            relations: list[Relation] = []
            for fk in insp.get_foreign_keys(table_name, schema=schema_name):
                for lc, rc in zip(fk["constrained_columns"], fk["referred_columns"]):
                    fk_map[lc] = ForeignKeyRef(table=fk["referred_table"], column=rc)
                if fk["constrained_columns"]:
                    relations.append(Relation(
                        type="belongsTo",
                        table=fk["referred_table"],
                        local_field=fk["constrained_columns"][0],
                        foreign_field=(fk["referred_columns"] or ["id"])[0],
                    ))

            columns = _reflect_columns(insp, table_name, schema_name, pk_cols, dialect)
            for col in columns:
                col.foreign_key = fk_map.get(col.name)
            tables.append(TableMetadata(name=table_name, columns=columns, relations=relations))
    finally:
        engine.dispose()

    add_reverse_relations(tables)
    return tables


def add_reverse_relations(tables: list[TableMetadata]) -> None:
    """Add a hasMany relation to every table that another table's FK points at."""
    by_name = {t.name: t for t in tables}
    for child in tables:
        for col in child.columns:
            if col.foreign_key is None or col.foreign_key.table not in by_name:
                continue
            parent = by_name[col.foreign_key.table]
            rel = Relation(
                type="hasMany",
                table=child.name,
                local_field=col.foreign_key.column,
                foreign_field=col.name,
            )
            if rel not in parent.relations:
                parent.relations.append(rel)


def _reflect_columns(insp, table_name: str, schema: Optional[str], pk_cols: list[str],
                     dialect: Dialect) -> list[ColumnMetadata]:
    raw_cols = insp.get_columns(table_name, schema=schema)
    result = []
    for col in raw_cols:
        sem_type = map_sqlalchemy_type(col["type"])
        is_pk = col["name"] in pk_cols
        # SQLite INTEGER PRIMARY KEY aliases the rowid
        rowid_alias = dialect == "sqlite" and is_pk and len(pk_cols) == 1 and sem_type in ("integer", "bigint")
        result.append(ColumnMetadata(
            name=col["name"],
            type=sem_type,
            nullable=col.get("nullable", True),
            primary_key=is_pk,
            default_value=_default_tag(col, rowid_alias),
        ))
    return result


def map_sqlalchemy_type(col_type) -> str:
    """Map a reflected SQLAlchemy type onto the semantic type tags."""
    if isinstance(col_type, sqltypes.Boolean):
        return "boolean"
    if isinstance(col_type, sqltypes.BigInteger):
        return "bigint"
    if isinstance(col_type, sqltypes.Integer):
        return "integer"
    if isinstance(col_type, sqltypes.Float):
        return "real"
    if isinstance(col_type, sqltypes.Numeric):
        return "decimal"
    if isinstance(col_type, (sqltypes.DateTime, sqltypes.Date, sqltypes.Time)):
        return "timestamp"
    if isinstance(col_type, sqltypes.JSON):
        return "json"
    if isinstance(col_type, (sqltypes.LargeBinary, sqltypes.BINARY, sqltypes.VARBINARY)):
        return "blob"
    if isinstance(col_type, sqltypes.Enum):
        return "enum"
    if isinstance(col_type, sqltypes.String):
        return "varchar"
    data_type = str(col_type).lower()
    # Simplify long type strings
    return data_type.split("(")[0].strip()


def _default_tag(col: dict, rowid_alias: bool):
    default = col.get("default")
    if col.get("autoincrement") is True or rowid_alias:
        return "autoincrement"
    if default is None:
        return None
    lowered = str(default).lower()
    if "nextval(" in lowered:
        return "autoincrement"
    if "now()" in lowered or "current_timestamp" in lowered:
        return "now()"
    if "uuid" in lowered:
        return "uuid()"
    return _parse_literal_default(str(default))


def _parse_literal_default(raw: str):
    value = raw.strip().strip("()")
    if "::" in value:          # postgres casts: 'draft'::character varying
        value = value.split("::", 1)[0]
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def _get_default_schema(dialect: Dialect) -> Optional[str]:
    if dialect == "postgresql":
        return "public"
    return None   # SQLite has no schema concept; MySQL uses the URL database
