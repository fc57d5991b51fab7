"""Data sources for chat message records and the user-profile count."""
import logging
import re
import sqlite3
from typing import Any, Dict, List, Optional
import httpx
from pydantic import ValidationError
from admin_dashboard.config import Settings
from admin_dashboard.models import check_db_ready
from admin_dashboard.schemas import MessageRecord
from admin_dashboard.storage import count_user_profiles, fetch_chat_messages

logger = logging.getLogger(__name__)

MESSAGE_SELECT = "id,message,ai_response,created_at,user_id,user_profiles(email)"
CONTENT_RANGE_TOTAL = re.compile(r"^(?:\d+-\d+|\*)/(\d+)$")


class DataSourceError(Exception):
    """The data source was unreachable or rejected the query."""


class DataSource:
    """
    Read-only query interface behind the dashboard.

    Implementations raise DataSourceError for every failure so callers
    only ever handle one error class.
    """

    name = "base"

    async def fetch_messages(self) -> List[MessageRecord]:
        """All message records, newest first."""
        raise NotImplementedError

    async def count_users(self) -> int:
        """Exact number of user profiles."""
        raise NotImplementedError

    async def ping(self) -> bool:
        """True when the source can answer queries."""
        raise NotImplementedError

    async def close(self) -> None:
        pass


def _parse_record(row: Dict[str, Any]) -> MessageRecord:
    """Build a MessageRecord from a row carrying either a flat email or a joined profile."""
    if not isinstance(row, dict):
        raise TypeError(f"expected an object, got {type(row).__name__}")
    email = row.get("email")
    profile = row.get("user_profiles")
    if isinstance(profile, list):
        profile = profile[0] if profile else None
    if isinstance(profile, dict):
        email = profile.get("email")
    return MessageRecord(
        id=str(row["id"]),
        message=row.get("message") or "",
        ai_response=row.get("ai_response") or "",
        created_at=row["created_at"],
        user_id=row.get("user_id"),
        email=email or None,
    )


def parse_records(rows: List[Dict[str, Any]]) -> List[MessageRecord]:
    try:
        return [_parse_record(row) for row in rows]
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        raise DataSourceError(f"malformed message record: {e}") from e


def parse_content_range(header: Optional[str]) -> int:
    """
    Extract the total from a Content-Range header.

    "0-24/3573" -> 3573, "*/0" -> 0. An unknown total ("*/*") is an error.
    """
    match = CONTENT_RANGE_TOTAL.match((header or "").strip())
    if not match:
        raise DataSourceError(f"missing or malformed Content-Range: {header!r}")
    return int(match.group(1))


class SQLiteDataSource(DataSource):
    """Local sqlite database with chat_messages and user_profiles tables."""

    name = "sqlite"

    def __init__(self, database_url: str):
        self.database_url = database_url

    async def fetch_messages(self) -> List[MessageRecord]:
        try:
            rows = fetch_chat_messages(self.database_url)
        except sqlite3.Error as e:
            raise DataSourceError(f"sqlite query failed: {e}") from e
        return parse_records(rows)

    async def count_users(self) -> int:
        try:
            return count_user_profiles(self.database_url)
        except sqlite3.Error as e:
            raise DataSourceError(f"sqlite query failed: {e}") from e

    async def ping(self) -> bool:
        return check_db_ready(self.database_url)


class SupabaseDataSource(DataSource):
    """Hosted backend queried through its PostgREST interface."""

    name = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise DataSourceError(f"{method} {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise DataSourceError(
                f"{method} {path} rejected with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise DataSourceError(f"{method} {path} failed: {e}") from e
        return response

    async def fetch_messages(self) -> List[MessageRecord]:
        response = await self._request(
            "GET",
            "/chat_messages",
            params={"select": MESSAGE_SELECT, "order": "created_at.desc"},
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise DataSourceError("chat_messages response is not JSON") from e
        if not isinstance(rows, list):
            raise DataSourceError("chat_messages response is not a list")
        return parse_records(rows)

    async def count_users(self) -> int:
        response = await self._request(
            "HEAD",
            "/user_profiles",
            params={"select": "*"},
            headers={"Prefer": "count=exact"},
        )
        return parse_content_range(response.headers.get("content-range"))

    async def ping(self) -> bool:
        try:
            await self._request("HEAD", "/user_profiles", params={"select": "id", "limit": "1"})
        except DataSourceError as e:
            logger.warning("Data source ping failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()


class UnconfiguredDataSource(DataSource):
    """Stands in when DATA_SOURCE cannot be built; every query fails."""

    name = "unconfigured"

    def __init__(self, reason: str):
        self.reason = reason

    async def fetch_messages(self) -> List[MessageRecord]:
        raise DataSourceError(self.reason)

    async def count_users(self) -> int:
        raise DataSourceError(self.reason)

    async def ping(self) -> bool:
        return False


def build_data_source(settings: Settings) -> DataSource:
    """Create the data source selected by DATA_SOURCE."""
    source = settings.data_source.lower()
    if source == "supabase":
        if not settings.validate_data_source():
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set for the supabase data source")
        return SupabaseDataSource(
            settings.supabase_url,
            settings.supabase_key,
            timeout=settings.request_timeout_seconds,
        )
    if source == "sqlite":
        return SQLiteDataSource(settings.database_url)
    raise ValueError(f"unknown DATA_SOURCE: {settings.data_source}")
