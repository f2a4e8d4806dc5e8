import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        conditions TEXT NOT NULL DEFAULT '[]',
        preferred_language TEXT NOT NULL DEFAULT 'en',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS chats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL REFERENCES users(id),
        role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
        content TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        language TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_chats_user ON chats(user_id, id)
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_tokens (
        token TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        expires_at TEXT NOT NULL
    )
    """,
]


class Database:
    """Owns the SQLite connection shared by the stores.

    Opened once at start-up and closed at shutdown; stores receive the
    instance rather than opening connections themselves.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self.conn = None

    def open(self) -> "Database":
        if self.conn is not None:
            return self

        if self.db_path != ":memory:":
            directory = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(directory, exist_ok=True)

        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

        for statement in SCHEMA:
            self.conn.execute(statement)
        self.conn.commit()

        logger.info(f"Database opened at {self.db_path}")
        return self

    @property
    def connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("Database is not open")
        return self.conn

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        return self.connection.execute(sql, params)

    def commit(self):
        self.connection.commit()

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database closed")

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
