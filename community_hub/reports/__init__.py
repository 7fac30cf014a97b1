"""
Reports Module

Revenue by service, transaction lists and dashboard totals over completed bookings.
"""

from .report_service import ReportAggregator

__all__ = ["ReportAggregator"]
