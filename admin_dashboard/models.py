"""SQLite schema for the local chat message store."""
import os
import sqlite3
from contextlib import contextmanager
from typing import Optional
from admin_dashboard.config import settings


def get_db_path(database_url: Optional[str] = None) -> str:
    """Extract database path from DATABASE_URL."""
    url = database_url or settings.database_url
    # sqlite:///./dashboard.db -> ./dashboard.db
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "", 1)
    return url.replace("sqlite://", "", 1)


@contextmanager
def get_db_connection(database_url: Optional[str] = None):
    """Context manager for database connections."""
    conn = sqlite3.connect(get_db_path(database_url), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(database_url: Optional[str] = None):
    """Create the user_profiles and chat_messages tables if missing."""
    db_dir = os.path.dirname(get_db_path(database_url))
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    with get_db_connection(database_url) as conn:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS user_profiles (
                id TEXT PRIMARY KEY,
                email TEXT
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chat_messages (
                id TEXT PRIMARY KEY,
                user_id TEXT REFERENCES user_profiles(id),
                message TEXT NOT NULL DEFAULT '',
                ai_response TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_chat_messages_created_at ON chat_messages (created_at)"
        )


def check_db_ready(database_url: Optional[str] = None) -> bool:
    """Check if database is accessible and both tables exist."""
    try:
        with get_db_connection(database_url) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS n FROM sqlite_master "
                "WHERE type='table' AND name IN ('chat_messages', 'user_profiles')"
            )
            return cursor.fetchone()["n"] == 2
    except sqlite3.Error:
        return False
