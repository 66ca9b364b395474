from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionPlan(str, Enum):
    FREE = "free"
    ECHO_PLUS = "echo_plus"
    ECHO_UNLIMITED = "echo_unlimited"


class Entitlement(BaseModel):
    """Premium flags as read from the entitlement source. Read-only for the engine."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    plan: SubscriptionPlan = SubscriptionPlan.FREE
    unlimited_swipes: bool = Field(default=False, alias="unlimitedSwipes")
    unlimited_super_likes: bool = Field(default=False, alias="unlimitedSuperLikes")

    @property
    def is_premium(self) -> bool:
        return self.plan != SubscriptionPlan.FREE

    @classmethod
    def for_plan(cls, plan: SubscriptionPlan) -> "Entitlement":
        premium = plan != SubscriptionPlan.FREE
        return cls(plan=plan, unlimited_swipes=premium, unlimited_super_likes=premium)


FREE_ENTITLEMENT = Entitlement.for_plan(SubscriptionPlan.FREE)


__all__ = ["Entitlement", "FREE_ENTITLEMENT", "SubscriptionPlan"]
