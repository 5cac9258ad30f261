"""Dungeon (multi-day project) domain models."""

from datetime import datetime

from pydantic import BaseModel, Field


class Challenge(BaseModel):
    """Single step inside a dungeon."""

    id: str
    title: str
    completed: bool = False


class DungeonCrawl(BaseModel):
    """Multi-day project with a time-bonus completion reward."""

    id: str = Field(..., description="Unique dungeon ID")
    title: str
    description: str = ""
    challenges: list[Challenge] = Field(default_factory=list)
    difficulty: int = Field(default=1, ge=1, le=5)
    xp: int = Field(default=0, ge=0, description="Base XP reward")
    start_time: datetime | None = None
    completion_time: datetime | None = None
    time_taken: int | None = Field(default=None, description="Seconds from start to completion")
    completed: bool = False


class ChallengeCreate(BaseModel):
    """Challenge payload for a new dungeon."""

    title: str = Field(..., min_length=1, max_length=200)


class DungeonCreate(BaseModel):
    """Payload for creating a dungeon."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    challenges: list[ChallengeCreate] = Field(default_factory=list)
    difficulty: int = Field(default=1, ge=1, le=5)
    xp: int = Field(default=100, ge=0)
