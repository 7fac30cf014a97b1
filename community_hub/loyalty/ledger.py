import logging
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional

from sqlalchemy.orm import Session

from community_hub.exceptions import InvalidInput, NotFound
from community_hub.locks import KeyedLockRegistry, USER
from community_hub.loyalty.schemas import (
    AccrualResult, LoyaltyState, LoyaltyTransactionRecord, MemberDiscountQuote, TierInfo
)
from community_hub.loyalty.tiers import Tier, TierTable, to_decimal
from community_hub.models import LoyaltyAccount, LoyaltyTransaction

logger = logging.getLogger(__name__)

DEFAULT_SPEND_PER_POINT = 20000


def tier_info(tier: Tier) -> TierInfo:
    return TierInfo(
        name=tier.name,
        min_spend=tier.min_spend,
        max_spend=tier.max_spend,
        point_value=tier.point_value,
        discount_percent=tier.discount_percent
    )


class LoyaltyLedger:
    """Per-user cumulative spend and point balance.

    The only write path is `accrue`, so spend and points never decrease.
    The tier is never stored: it is derived from cumulative spend on every read.
    """

    def __init__(
        self,
        db: Session,
        tier_table: TierTable,
        locks: KeyedLockRegistry,
        spend_per_point: int = DEFAULT_SPEND_PER_POINT
    ):
        if spend_per_point <= 0:
            raise InvalidInput("spend_per_point must be positive")
        self.db = db
        self.tier_table = tier_table
        self.locks = locks
        self.spend_per_point = spend_per_point

    def points_for(self, net_amount) -> int:
        """1 point per `spend_per_point` currency units, remainder dropped"""
        net_amount = to_decimal(net_amount, "net_amount")
        return int(net_amount // self.spend_per_point)

    def enroll(self, user_id: str) -> LoyaltyState:
        """Open an empty account for the user if none exists"""
        _check_user_id(user_id)
        with self.locks.transaction(self.db, (USER, user_id)):
            account = self._get_for_update(user_id)
            if account is None:
                account = self._open_account(user_id)
                logger.info("Enrolled user %s in the loyalty program", user_id)
            state = self._state(account)
        return state

    def accrue(self, user_id: str, net_amount, reference_id: Optional[str] = None) -> AccrualResult:
        """Add completed spend, award points and recompute the tier"""
        _check_user_id(user_id)
        net_amount = to_decimal(net_amount, "net_amount")
        if net_amount < 0:
            raise InvalidInput(f"net_amount must be non-negative, got {net_amount}")

        points_earned = self.points_for(net_amount)

        with self.locks.transaction(self.db, (USER, user_id)):
            account = self._get_for_update(user_id)
            if account is None:
                account = self._open_account(user_id)

            spend_before = Decimal(account.cumulative_spend or 0)
            tier_before = self.tier_table.tier_for(spend_before)

            account.cumulative_spend = spend_before + net_amount
            account.point_balance = (account.point_balance or 0) + points_earned
            tier_after = self.tier_table.tier_for(account.cumulative_spend)

            self.db.add(LoyaltyTransaction(
                user_id=user_id,
                reference_id=reference_id,
                net_amount=net_amount,
                points_earned=points_earned,
                spend_after=account.cumulative_spend,
                tier_before=tier_before.name,
                tier_after=tier_after.name
            ))
            self.db.flush()

            logger.info(
                "Accrued %s for user %s: +%d points (ref=%s)",
                net_amount, user_id, points_earned, reference_id
            )
            if tier_after.name != tier_before.name:
                logger.info(
                    "User %s moved from tier %s to %s",
                    user_id, tier_before.name, tier_after.name
                )

            state = self._state(account)

        return AccrualResult(
            **state.dict(),
            points_earned=points_earned,
            previous_tier=tier_before.name,
            tier_changed=tier_after.name != tier_before.name
        )

    def get_state(self, user_id: str) -> LoyaltyState:
        return self._state(self._require_account(user_id))

    def point_value(self, user_id: str) -> Decimal:
        account = self._require_account(user_id)
        return self.tier_table.tier_for(account.cumulative_spend).point_value

    def progress_to_next_tier(self, user_id: str) -> float:
        account = self._require_account(user_id)
        return self.tier_table.progress(account.cumulative_spend)

    def member_discount(self, user_id: str, amount) -> MemberDiscountQuote:
        """Discount a member's tier grants on `amount`, floored to whole units.

        Users without an account get the base tier's discount.
        """
        amount = to_decimal(amount, "amount")
        if amount < 0:
            raise InvalidInput(f"amount must be non-negative, got {amount}")

        account = self._get(user_id)
        if account is None:
            tier = self.tier_table.base_tier
        else:
            tier = self.tier_table.tier_for(account.cumulative_spend)
        discount = (amount * tier.discount_percent / Decimal('100')).quantize(
            Decimal('1'), rounding=ROUND_DOWN
        )
        return MemberDiscountQuote(
            user_id=user_id,
            tier=tier.name,
            amount=amount,
            discount_percent=tier.discount_percent,
            discount=discount,
            final_amount=amount - discount
        )

    def history(self, user_id: str) -> List[LoyaltyTransactionRecord]:
        self._require_account(user_id)
        rows = self.db.query(LoyaltyTransaction).filter(
            LoyaltyTransaction.user_id == user_id
        ).order_by(LoyaltyTransaction.id).all()
        return [LoyaltyTransactionRecord.from_orm(row) for row in rows]

    # Internal helpers
    def _get(self, user_id: str) -> Optional[LoyaltyAccount]:
        return self.db.query(LoyaltyAccount).filter(
            LoyaltyAccount.user_id == user_id
        ).first()

    def _require_account(self, user_id: str) -> LoyaltyAccount:
        account = self._get(user_id)
        if account is None:
            raise NotFound("Loyalty account", user_id)
        return account

    def _get_for_update(self, user_id: str) -> Optional[LoyaltyAccount]:
        return self.db.query(LoyaltyAccount).filter(
            LoyaltyAccount.user_id == user_id
        ).populate_existing().with_for_update().first()

    def _open_account(self, user_id: str) -> LoyaltyAccount:
        account = LoyaltyAccount(
            user_id=user_id,
            cumulative_spend=Decimal('0'),
            point_balance=0
        )
        self.db.add(account)
        self.db.flush()
        return account

    def _state(self, account: LoyaltyAccount) -> LoyaltyState:
        spend = Decimal(account.cumulative_spend or 0)
        tier = self.tier_table.tier_for(spend)
        following = self.tier_table.next_tier(tier)
        points = account.point_balance or 0
        return LoyaltyState(
            user_id=account.user_id,
            cumulative_spend=spend,
            points=points,
            tier=tier_info(tier),
            point_value=tier.point_value,
            points_value=tier.point_value * points,
            progress=self.tier_table.progress(spend),
            next_tier=tier_info(following) if following else None,
            amount_to_next_tier=self.tier_table.amount_to_next_tier(spend)
        )


def _check_user_id(user_id: str) -> None:
    if not user_id or not str(user_id).strip():
        raise InvalidInput("user_id is required")
