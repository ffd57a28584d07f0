import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient

from config import settings
from main import app

SCHEMA = """
CREATE TABLE users (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    name       TEXT NOT NULL,
    email      TEXT UNIQUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE posts (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id  INTEGER REFERENCES users(id),
    title    TEXT NOT NULL,
    views    INTEGER DEFAULT 0,
    status   TEXT DEFAULT 'draft'
);
INSERT INTO users (name, email) VALUES ('Ada', 'ada@example.com');
INSERT INTO users (name, email) VALUES ('Grace', 'grace@example.com');
INSERT INTO users (name, email) VALUES ('Linus', 'linus@example.com');
INSERT INTO posts (user_id, title, views) VALUES (1, 'Notes on the engine', 10);
INSERT INTO posts (user_id, title, views) VALUES (1, 'Bernoulli numbers', 20);
INSERT INTO posts (user_id, title, views) VALUES (2, 'Compilers', 30);
INSERT INTO posts (user_id, title, views) VALUES (2, 'COBOL', 40);
INSERT INTO posts (user_id, title, views) VALUES (2, 'Nanoseconds', 50);
"""


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def _reflection_backend(monkeypatch):
    # Tests run without Node/Prisma; reflect in-process unless a test opts back in
    monkeypatch.setattr(settings, "INTROSPECTION_BACKEND", "sqlalchemy")


@pytest.fixture
def api(client):
    client.cookies.clear()
    return client


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        conn.executescript(SCHEMA)
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)
