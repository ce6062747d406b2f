"""
Workshop Analytics Module

Aggregates jobs, invoices, inventory, vehicles and technicians into
dashboard reports.
"""

from .period import PeriodContext, ALL_TECHNICIANS
from .job_filter import matches, filter_jobs
from .revenue import RevenueAllocator, revenue_in_period
from .engine import AnalyticsEngine, compute_report
from .technician import compute_technician_report
from .summary import compute_business_summary
from .results import AnalyticsReport, TechnicianReport, BusinessSummary, to_dict

__all__ = [
    "PeriodContext",
    "ALL_TECHNICIANS",
    "matches",
    "filter_jobs",
    "RevenueAllocator",
    "revenue_in_period",
    "AnalyticsEngine",
    "compute_report",
    "compute_technician_report",
    "compute_business_summary",
    "AnalyticsReport",
    "TechnicianReport",
    "BusinessSummary",
    "to_dict",
]
