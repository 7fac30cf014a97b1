"""
Loyalty Module

Membership tiers and the points ledger. Spend from completed bookings earns
1 point per SPEND_PER_POINT currency units; cumulative spend decides the tier,
which sets the value of a point and the member discount on future bookings.
"""

from .tiers import Tier, TierTable
from .ledger import LoyaltyLedger
from .schemas import LoyaltyState, AccrualResult, TierInfo, MemberDiscountQuote

__all__ = [
    "Tier",
    "TierTable",
    "LoyaltyLedger",
    "LoyaltyState",
    "AccrualResult",
    "TierInfo",
    "MemberDiscountQuote"
]
