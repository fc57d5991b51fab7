"""Pydantic models for message records and the derived dashboard view."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class MessageRecord(BaseModel):
    """One stored chat exchange as returned by a data source."""
    id: str
    message: str = ""
    ai_response: str = ""
    created_at: datetime
    user_id: Optional[str] = None
    email: Optional[str] = None

    model_config = {"frozen": True}


class DashboardStats(BaseModel):
    """Summary figures shown on the four cards."""
    total_messages: int = Field(0, ge=0)
    total_users: int = Field(0, ge=0)
    messages_today: int = Field(0, ge=0)
    active_users_today: int = Field(0, ge=0)


class DailyStatEntry(BaseModel):
    """Single bar group of the activity chart."""
    date: str
    messages: int = Field(0, ge=0)
    users: int = Field(0, ge=0)


class DisplayMessage(BaseModel):
    """Message row ready for the table."""
    id: str
    email: str
    message: str
    ai_response: str
    created_at: str


class DashboardView(BaseModel):
    """Published state of the admin page."""
    stats: DashboardStats = Field(default_factory=DashboardStats)
    daily_stats: List[DailyStatEntry] = Field(default_factory=list)
    messages: List[DisplayMessage] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    generated_at: Optional[datetime] = None
