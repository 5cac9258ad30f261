"""Weekly boss domain models."""

from pydantic import BaseModel, Field, field_validator

from src.domain.task import TaskCategory


class BossRewards(BaseModel):
    """Payout granted once when the boss is defeated."""

    xp: int = Field(default=0, ge=0)
    coins: int = Field(default=0, ge=0)
    gems: int = Field(default=0, ge=0)


class Boss(BaseModel):
    """Weekly HP-pool entity damaged by completed tasks."""

    id: str = Field(..., description="Catalog ID of the boss")
    name: str
    title: str = ""
    description: str = ""
    max_hp: int = Field(..., ge=1)
    current_hp: int = Field(..., ge=0)
    resistances: dict[TaskCategory, float] = Field(
        default_factory=dict,
        description="Damage divisor per category: <1.0 is a weakness, >1.0 a resistance",
    )
    rewards: BossRewards = Field(default_factory=BossRewards)
    week: str = Field(..., description="ISO week the boss was spawned for (e.g., '2026-W42')")
    last_defeated: str | None = Field(default=None, description="ISO week of defeat")

    @field_validator("resistances")
    @classmethod
    def validate_positive_resistances(cls, v: dict[TaskCategory, float]) -> dict[TaskCategory, float]:
        """Resistances divide damage, so they must be strictly positive."""
        for category, multiplier in v.items():
            if multiplier <= 0:
                raise ValueError(f"Resistance for {category} must be positive, got {multiplier}")
        return v

    @property
    def is_defeated(self) -> bool:
        return self.current_hp <= 0
