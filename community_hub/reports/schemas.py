from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from community_hub.resources.schemas import ServiceType

class ServiceRevenue(BaseModel):
    """Revenue rollup for one service"""
    service: ServiceType
    revenue: Decimal
    transactions: int

class TransactionRecord(BaseModel):
    """A completed (or delivered) booking as a financial transaction"""
    booking_id: str
    user_id: str
    service_type: ServiceType
    resource_id: str
    amount: Decimal
    discount: Decimal
    final_amount: Decimal
    points_earned: int
    completed_at: Optional[datetime] = None

class ReportSummary(BaseModel):
    total_revenue: Decimal
    total_transactions: int
    average_transaction_value: Decimal
    bookings_by_status: Dict[str, int]
    active_bookings: int

class TransactionList(BaseModel):
    transactions: List[TransactionRecord]
    total: int
