from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from community_hub.dependencies import get_report_aggregator
from community_hub.reports.report_service import ReportAggregator
from community_hub.reports.schemas import ReportSummary, ServiceRevenue, TransactionList
from community_hub.resources.schemas import ServiceType

router = APIRouter()

@router.get("/revenue-by-service", response_model=List[ServiceRevenue])
def get_revenue_by_service(
    reports: ReportAggregator = Depends(get_report_aggregator)
):
    """Revenue and transaction count per service"""
    return reports.revenue_by_service()

@router.get("/transactions", response_model=TransactionList)
def get_transactions(
    user_id: Optional[str] = Query(None, description="Filter by user"),
    service_type: Optional[ServiceType] = Query(None, description="Filter by service"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    reports: ReportAggregator = Depends(get_report_aggregator)
):
    """Completed bookings as transactions, most recent first"""
    transactions, total = reports.transactions(
        user_id=user_id, service_type=service_type, skip=skip, limit=limit
    )
    return TransactionList(transactions=transactions, total=total)

@router.get("/summary", response_model=ReportSummary)
def get_summary(
    reports: ReportAggregator = Depends(get_report_aggregator)
):
    """Dashboard totals"""
    return reports.summary()
