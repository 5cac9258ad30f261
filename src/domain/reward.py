"""Reward shop domain models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class RedeemPeriod(StrEnum):
    """Window over which a reward's redemption limit applies."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class InventoryItem(BaseModel):
    """Item granted by a purchased reward."""

    id: str
    name: str
    type: str = Field(default="Trinket", description="Item slot or kind (e.g., 'Weapon', 'Potion')")
    description: str = ""


class EquipmentSlot(StrEnum):
    """Slots an inventory item can be equipped into, matched against `InventoryItem.type`."""

    WEAPON = "weapon"
    ARMOR = "armor"
    HELMET = "helmet"
    SHIELD = "shield"


class Equipment(BaseModel):
    """Items currently equipped, one per slot."""

    weapon: InventoryItem | None = None
    armor: InventoryItem | None = None
    helmet: InventoryItem | None = None
    shield: InventoryItem | None = None


class RewardItem(BaseModel):
    """Redeemable reward priced in either coins or gems."""

    id: str = Field(..., description="Unique reward ID")
    title: str = Field(..., description="Reward title (e.g., 'Movie night')")
    description: str = ""
    coin_cost: int | None = Field(default=None, ge=0)
    gem_cost: int | None = Field(default=None, ge=0)
    redeem_limit: int | None = Field(default=None, ge=1, description="Max redemptions per period")
    redeem_period: RedeemPeriod | None = None
    item: InventoryItem | None = Field(default=None, description="Item appended to the inventory on purchase")
    level_requirement: int = Field(default=0, ge=0)
    category: str = Field(default="Custom")

    @model_validator(mode="after")
    def validate_single_currency(self) -> "RewardItem":
        """A reward is priced in gems or coins, not both."""
        if self.coin_cost and self.gem_cost:
            raise ValueError("Reward must cost either coins or gems, not both")
        return self


class CustomRewardCreate(BaseModel):
    """Payload for a player-defined reward."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    coin_cost: int | None = Field(default=None, ge=0)
    gem_cost: int | None = Field(default=None, ge=0)
    redeem_limit: int | None = Field(default=None, ge=1)
    redeem_period: RedeemPeriod | None = None

    @model_validator(mode="after")
    def validate_single_currency(self) -> "CustomRewardCreate":
        if self.coin_cost and self.gem_cost:
            raise ValueError("Reward must cost either coins or gems, not both")
        return self


class RedeemedReward(BaseModel):
    """Redemption history for one reward."""

    reward_id: str
    timestamps: list[datetime] = Field(default_factory=list)
