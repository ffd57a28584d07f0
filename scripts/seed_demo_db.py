#!/usr/bin/env python3
"""
Seed a local SQLite database with demo data for Tabula development.
Usage (from the repository root):
    python scripts/seed_demo_db.py
Creates: scripts/demo.db  (browse it with ?url=<absolute path to demo.db>)
"""
import sqlite3
import random
from datetime import datetime, timedelta
from pathlib import Path

DB_PATH = Path(__file__).parent / "demo.db"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS authors (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        name        TEXT    NOT NULL,
        email       TEXT    UNIQUE NOT NULL,
        is_active   BOOLEAN DEFAULT 1,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS categories (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        slug        TEXT    UNIQUE NOT NULL,
        label       TEXT    NOT NULL
    )""",
    """
    CREATE TABLE IF NOT EXISTS articles (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        author_id   INTEGER NOT NULL REFERENCES authors(id),
        category_id INTEGER REFERENCES categories(id),
        title       TEXT    NOT NULL,
        body        TEXT,
        status      TEXT    DEFAULT 'draft' CHECK(status IN ('draft','published','archived')),
        views       INTEGER DEFAULT 0,
        published_at TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS comments (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        article_id  INTEGER NOT NULL REFERENCES articles(id),
        author_name TEXT    NOT NULL,
        content     TEXT    NOT NULL,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
]

CATEGORIES = [("databases", "Databases"), ("python", "Python"), ("ops", "Operations"), ("design", "Design")]
STATUSES = ["draft", "published", "archived"]


def seed():
    conn = sqlite3.connect(DB_PATH)
    cur  = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    for slug, label in CATEGORIES:
        cur.execute("INSERT OR IGNORE INTO categories(slug, label) VALUES (?,?)", (slug, label))

    # authors (25)
    for i in range(1, 26):
        cur.execute("INSERT OR IGNORE INTO authors(name, email, is_active, created_at) VALUES (?,?,?,?)",
                    (f"Author {i}", f"author{i}@example.com", random.random() > 0.2,
                     datetime.now() - timedelta(days=random.randint(10, 730))))

    # articles (120) + comments
    for i in range(1, 121):
        status = random.choice(STATUSES)
        published = datetime.now() - timedelta(days=random.randint(0, 365)) if status == "published" else None
        cur.execute("INSERT INTO articles(author_id,category_id,title,body,status,views,published_at) "
                    "VALUES (?,?,?,?,?,?,?)",
                    (random.randint(1, 25), random.randint(1, len(CATEGORIES)), f"Article {i}",
                     f"Body of article {i}.", status, random.randint(0, 5000), published))
        article_id = cur.lastrowid

        for c in range(random.randint(0, 5)):
            cur.execute("INSERT INTO comments(article_id,author_name,content) VALUES (?,?,?)",
                        (article_id, f"Reader {random.randint(1, 300)}", f"Comment {c + 1} on article {i}"))

    conn.commit()
    conn.close()
    print(f"Demo database seeded: {DB_PATH}")
    print("   Tables: authors, categories, articles, comments")


if __name__ == "__main__":
    seed()
