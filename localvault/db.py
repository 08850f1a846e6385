import sqlite3
from pathlib import Path
from .utils import now_utc_iso

def get_conn(db_path: str) -> sqlite3.Connection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, isolation_level=None)  # autocommit
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn

DDL = [
    # Browser-style key/value storage: every value is plain JSON text
    """
CREATE TABLE IF NOT EXISTS local_store (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at_utc TEXT NOT NULL
);
""",
]

def migrate(conn: sqlite3.Connection):
    cur = conn.cursor()
    for stmt in DDL:
        cur.execute(stmt)
    conn.commit()


class LocalStore:
    """String key/value store with the same surface as browser localStorage."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        migrate(conn)

    @classmethod
    def open(cls, db_path: str) -> "LocalStore":
        return cls(get_conn(db_path))

    def get_item(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM local_store WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str):
        self.conn.execute(
            """
            INSERT INTO local_store(key, value, updated_at_utc) VALUES(?,?,?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at_utc=excluded.updated_at_utc
            """,
            (key, value, now_utc_iso()),
        )

    def remove_item(self, key: str):
        self.conn.execute("DELETE FROM local_store WHERE key=?", (key,))

    def keys(self) -> list[str]:
        return [row[0] for row in self.conn.execute("SELECT key FROM local_store ORDER BY key")]

    def close(self):
        self.conn.close()
