"""Account usage schemas."""

from enum import Enum

from pydantic import BaseModel


class SubscriptionTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class UsageResponse(BaseModel):
    tier: SubscriptionTier
    jobs_used: int
    limit: int | None = None
    remaining: int | None = None
