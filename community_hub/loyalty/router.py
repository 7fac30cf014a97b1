from decimal import Decimal
from fastapi import APIRouter, Depends, Query, Request
from typing import List

from community_hub.dependencies import get_loyalty_ledger, get_tier_table
from community_hub.loyalty.ledger import LoyaltyLedger, tier_info
from community_hub.loyalty.schemas import (
    LoyaltyState, LoyaltyTransactionRecord, MemberDiscountQuote, TierTableResponse
)
from community_hub.loyalty.tiers import TierTable

router = APIRouter()

@router.get("/tiers", response_model=TierTableResponse)
def get_tiers(
    request: Request,
    tier_table: TierTable = Depends(get_tier_table)
):
    """Configured membership tiers"""
    return TierTableResponse(
        spend_per_point=request.app.state.settings.SPEND_PER_POINT,
        tiers=[tier_info(tier) for tier in tier_table.tiers]
    )

@router.post("/{user_id}", response_model=LoyaltyState)
def enroll_user(
    user_id: str,
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger)
):
    """Open a loyalty account (no-op if one exists)"""
    return ledger.enroll(user_id)

@router.get("/{user_id}", response_model=LoyaltyState)
def get_loyalty_state(
    user_id: str,
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger)
):
    """Points, tier and progress towards the next tier"""
    return ledger.get_state(user_id)

@router.get("/{user_id}/history", response_model=List[LoyaltyTransactionRecord])
def get_loyalty_history(
    user_id: str,
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger)
):
    """Every accrual credited to the user"""
    return ledger.history(user_id)

@router.get("/{user_id}/discount", response_model=MemberDiscountQuote)
def quote_member_discount(
    user_id: str,
    amount: Decimal = Query(..., ge=0, description="Amount before discount"),
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger)
):
    """Discount the user's tier grants on a given amount"""
    return ledger.member_discount(user_id, amount)
