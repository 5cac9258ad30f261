"""Journal and weekly review domain models."""

from datetime import datetime

from pydantic import BaseModel, Field


class JournalEntry(BaseModel):
    """Journal entry."""

    id: str
    content: str
    mood: str | None = None
    created_at: datetime


class JournalEntryCreate(BaseModel):
    content: str = Field(..., min_length=1)
    mood: str | None = None


class WeeklyReview(BaseModel):
    """End-of-week reflection."""

    id: str
    wins: str = ""
    challenges: str = ""
    next_week_focus: str = ""
    created_at: datetime
    week_number: int
    year: int


class WeeklyReviewCreate(BaseModel):
    wins: str = ""
    challenges: str = ""
    next_week_focus: str = ""
