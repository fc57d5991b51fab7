"""Database storage operations for the local chat message store."""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from admin_dashboard.models import get_db_connection


def to_utc_text(ts: datetime) -> str:
    """2026-10-18T12:00:00.000000Z regardless of the input offset."""
    return ts.astimezone(timezone.utc).replace(tzinfo=None).isoformat(timespec="microseconds") + "Z"


def insert_user_profile(
    email: Optional[str],
    user_id: Optional[str] = None,
    database_url: Optional[str] = None,
) -> str:
    """Insert a user profile and return its id."""
    user_id = user_id or str(uuid.uuid4())
    with get_db_connection(database_url) as conn:
        conn.execute(
            "INSERT INTO user_profiles (id, email) VALUES (?, ?)",
            (user_id, email),
        )
    return user_id


def insert_chat_message(
    message: str,
    ai_response: str,
    user_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
    message_id: Optional[str] = None,
    database_url: Optional[str] = None,
) -> str:
    """
    Insert a chat exchange.

    created_at defaults to the current time. Naive values are taken as host
    local time. Stored as fixed-width UTC text so ORDER BY created_at sorts
    by instant.
    Returns the message id.
    """
    message_id = message_id or str(uuid.uuid4())
    created_at = created_at or datetime.now(timezone.utc)

    with get_db_connection(database_url) as conn:
        conn.execute(
            """
            INSERT INTO chat_messages (id, user_id, message, ai_response, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (message_id, user_id, message, ai_response, to_utc_text(created_at)),
        )
    return message_id


def fetch_chat_messages(database_url: Optional[str] = None) -> List[Dict]:
    """
    Retrieve every chat message with its user's email.

    Ordered by created_at DESC. Messages whose user cannot be resolved
    carry email None.
    """
    with get_db_connection(database_url) as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT m.id,
                   m.message,
                   m.ai_response,
                   m.created_at,
                   m.user_id,
                   p.email
            FROM chat_messages AS m
            LEFT JOIN user_profiles AS p ON p.id = m.user_id
            ORDER BY m.created_at DESC, m.id DESC
            """
        )
        return [dict(row) for row in cursor.fetchall()]


def count_user_profiles(database_url: Optional[str] = None) -> int:
    """Exact number of user profiles."""
    with get_db_connection(database_url) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) AS total FROM user_profiles")
        return cursor.fetchone()["total"]


def clear_all(database_url: Optional[str] = None) -> None:
    """Delete every message and profile."""
    with get_db_connection(database_url) as conn:
        conn.execute("DELETE FROM chat_messages")
        conn.execute("DELETE FROM user_profiles")
