from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

class TierInfo(BaseModel):
    """Membership tier as exposed to clients"""
    name: str
    min_spend: Decimal
    max_spend: Optional[Decimal] = None
    point_value: Decimal
    discount_percent: Decimal

    class Config:
        from_attributes = True

class LoyaltyState(BaseModel):
    """Read model of a user's loyalty standing"""
    user_id: str
    cumulative_spend: Decimal
    points: int
    tier: TierInfo
    point_value: Decimal
    points_value: Decimal  # points converted to currency at the current tier's rate
    progress: float
    next_tier: Optional[TierInfo] = None
    amount_to_next_tier: Optional[Decimal] = None

class AccrualResult(LoyaltyState):
    """Loyalty state right after an accrual"""
    points_earned: int
    previous_tier: str
    tier_changed: bool

class LoyaltyTransactionRecord(BaseModel):
    id: int
    user_id: str
    reference_id: Optional[str] = None
    net_amount: Decimal
    points_earned: int
    spend_after: Decimal
    tier_before: str
    tier_after: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MemberDiscountQuote(BaseModel):
    user_id: str
    tier: str
    amount: Decimal
    discount_percent: Decimal
    discount: Decimal
    final_amount: Decimal

class TierTableResponse(BaseModel):
    spend_per_point: int
    tiers: List[TierInfo]
