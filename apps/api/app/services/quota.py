"""Per-tier job quota policy."""

from dataclasses import dataclass
import logging

from app.core.logging_safety import safe_log_identifier
from app.repositories.store import AccountStore
from app.schemas.account import SubscriptionTier

logger = logging.getLogger(__name__)

# None means unlimited.
TIER_LIMITS: dict[SubscriptionTier, int | None] = {
    SubscriptionTier.FREE: 3,
    SubscriptionTier.PRO: 100,
    SubscriptionTier.ENTERPRISE: None,
}


@dataclass(slots=True, frozen=True)
class QuotaUsage:
    tier: SubscriptionTier
    jobs_used: int
    limit: int | None

    @property
    def remaining(self) -> int | None:
        if self.limit is None:
            return None
        return max(self.limit - self.jobs_used, 0)

    @property
    def allows_new_job(self) -> bool:
        return self.limit is None or self.jobs_used < self.limit


class QuotaPolicy:
    """Read-only decision over an account's tier and usage counter."""

    def __init__(self, accounts: AccountStore) -> None:
        self._accounts = accounts

    def usage(self, account_id: str) -> QuotaUsage | None:
        account = self._accounts.get(account_id)
        if account is None:
            return None
        tier = SubscriptionTier(account.subscription_tier)
        return QuotaUsage(tier=tier, jobs_used=account.jobs_used, limit=TIER_LIMITS[tier])

    def can_create(self, account_id: str) -> bool:
        safe_account_id = safe_log_identifier(account_id, prefix="pid")
        usage = self.usage(account_id)
        if usage is None:
            logger.warning("quota.denied account_id=%s reason=unknown_account", safe_account_id)
            return False

        logger.info(
            "quota.checked account_id=%s tier=%s used=%s limit=%s allowed=%s",
            safe_account_id,
            usage.tier.value,
            usage.jobs_used,
            "unlimited" if usage.limit is None else usage.limit,
            usage.allows_new_job,
        )
        return usage.allows_new_job
