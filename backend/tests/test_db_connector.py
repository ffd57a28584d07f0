import pytest
from unittest.mock import patch
from sqlalchemy import types as sqltypes

from core.db_connector import (
    ConnectionRegistry, detect_dialect, map_sqlalchemy_type, mask_url,
    reflect_schema, to_sqlalchemy_url,
)
from core.errors import UnsupportedDialectError
from models.table import SEMANTIC_TYPES


@pytest.mark.parametrize("url,expected", [
    ("postgresql://u:p@localhost:5432/app", "postgresql"),
    ("postgres://u:p@localhost/app", "postgresql"),
    ("mysql://u:p@localhost:3306/app", "mysql"),
    ("mariadb://u:p@localhost/app", "mysql"),
    ("file.db", "sqlite"),
    ("/var/data/app.sqlite", "sqlite"),
    ("sqlite:///tmp/app", "sqlite"),
])
def test_detect_dialect(url, expected):
    assert detect_dialect(url) == expected


@pytest.mark.parametrize("url", ["unknown://x", "mssql://u@h/db", "", "data.csv"])
def test_detect_dialect_unsupported(url):
    with pytest.raises(UnsupportedDialectError, match="Unsupported database dialect"):
        detect_dialect(url)


@pytest.mark.parametrize("url,expected", [
    ("postgres://u:p@h/db", "postgresql+psycopg2://u:p@h/db"),
    ("postgresql://u:p@h:5432/db", "postgresql+psycopg2://u:p@h:5432/db"),
    ("mariadb://u:p@h/db", "mysql+pymysql://u:p@h/db"),
    ("file.db", "sqlite:///file.db"),
    ("sqlite:///tmp/x.db", "sqlite:////tmp/x.db"),
])
def test_to_sqlalchemy_url(url, expected):
    assert to_sqlalchemy_url(url) == expected


def test_mask_url():
    assert mask_url("postgresql://me:secret@db/app") == "postgresql://me:***@db/app"
    assert mask_url("/tmp/app.db") == "/tmp/app.db"


# ── Registry ─────────────────────────────────────────────────────────────────

def test_registry_returns_same_engine(temp_sqlite_db):
    registry = ConnectionRegistry()
    first = registry.resolve(temp_sqlite_db)
    assert registry.resolve(temp_sqlite_db) is first
    assert len(registry) == 1
    registry.dispose_all()


def test_registry_distinct_strings_get_distinct_engines(temp_sqlite_db):
    registry = ConnectionRegistry()
    a = registry.resolve(temp_sqlite_db)
    b = registry.resolve("sqlite://" + temp_sqlite_db)
    assert a is not b
    registry.dispose_all()


def test_registry_rejects_unsupported():
    registry = ConnectionRegistry()
    with pytest.raises(UnsupportedDialectError):
        registry.resolve("unknown://x")
    assert len(registry) == 0


def test_registry_evicts_and_disposes_least_recent():
    registry = ConnectionRegistry(max_size=2)
    a = registry.resolve("a.db")
    b = registry.resolve("b.db")
    registry.resolve("a.db")           # a is now most recent
    with patch.object(b, "dispose") as dispose_b:
        registry.resolve("c.db")
        dispose_b.assert_called_once()
    assert "a.db" in registry
    assert "b.db" not in registry
    assert registry.resolve("a.db") is a
    registry.dispose_all()


def test_registry_disconnect(temp_sqlite_db):
    registry = ConnectionRegistry()
    registry.resolve(temp_sqlite_db)
    assert registry.disconnect(temp_sqlite_db) is True
    assert registry.disconnect(temp_sqlite_db) is False
    assert registry.cached_urls() == []


def test_registry_ping(temp_sqlite_db):
    registry = ConnectionRegistry()
    assert registry.ping(temp_sqlite_db) is True
    registry.dispose_all()


# ── Reflection ───────────────────────────────────────────────────────────────

def test_reflect_schema(temp_sqlite_db):
    tables = {t.name: t for t in reflect_schema(temp_sqlite_db)}
    assert set(tables) == {"users", "posts"}

    posts = tables["posts"]
    assert posts.primary_key == "id"
    user_id = posts.get_column("user_id")
    assert user_id.type == "integer"
    assert user_id.foreign_key.table == "users"
    assert user_id.foreign_key.column == "id"
    assert posts.get_column("views").default_value == 0
    assert posts.get_column("status").default_value == "draft"
    assert posts.get_column("title").nullable is False
    assert [(r.type, r.table, r.local_field, r.foreign_field) for r in posts.relations] == [
        ("belongsTo", "users", "user_id", "id"),
    ]

    users = tables["users"]
    assert users.get_column("created_at").type == "timestamp"
    assert users.get_column("created_at").default_value == "now()"
    assert [(r.type, r.table, r.local_field, r.foreign_field) for r in users.relations] == [
        ("hasMany", "posts", "id", "user_id"),
    ]


@pytest.mark.parametrize("col_type,expected", [
    (sqltypes.VARCHAR(255), "varchar"),
    (sqltypes.TEXT(), "varchar"),
    (sqltypes.INTEGER(), "integer"),
    (sqltypes.BIGINT(), "bigint"),
    (sqltypes.REAL(), "real"),
    (sqltypes.NUMERIC(10, 2), "decimal"),
    (sqltypes.BOOLEAN(), "boolean"),
    (sqltypes.TIMESTAMP(), "timestamp"),
    (sqltypes.DATE(), "timestamp"),
    (sqltypes.JSON(), "json"),
    (sqltypes.BLOB(), "blob"),
    (sqltypes.Enum("a", "b"), "enum"),
])
def test_map_sqlalchemy_type(col_type, expected):
    assert map_sqlalchemy_type(col_type) == expected


def test_reflected_types_are_semantic(temp_sqlite_db):
    for meta in reflect_schema(temp_sqlite_db):
        for col in meta.columns:
            assert col.type in SEMANTIC_TYPES, f"{meta.name}.{col.name}: {col.type}"
