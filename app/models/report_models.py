"""
Analytics Pydantic Models

Response schemas for the analytics endpoints:
- Workshop report (revenue, leaderboard, top-5 rollups, stock value)
- Technician drill-down
- Business summary

Money is in the workshop currency, rounded to 2 decimals.
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class PeriodInfo(BaseModel):
    """Window and filters a report was computed for"""
    start: str = Field(..., description="Start date (YYYY-MM-DD, inclusive)")
    end: str = Field(..., description="End date (YYYY-MM-DD, inclusive)")
    technician_id: str = Field(default="all", description="Technician filter")
    job_types: List[str] = []


# ============== Rollup Models ==============

class TechnicianStandingModel(BaseModel):
    """Leaderboard row"""
    technician_id: str
    name: str
    total_assigned: int
    completed_jobs: int
    revenue: float = Field(..., description="Even-split share of in-period payments")
    completion_rate: float = Field(..., description="Completed / assigned, percent")


class IssueStatModel(BaseModel):
    issue: str
    count: int
    revenue: float


class BrandStatModel(BaseModel):
    brand: str
    count: int


class PartStatModel(BaseModel):
    name: str
    quantity: float
    revenue: float


# ============== Report Models ==============

class AnalyticsReportResponse(BaseModel):
    """Response for /report"""
    period: PeriodInfo
    total_revenue: float = Field(..., description="Payments received in the period")
    completed_count: int
    target_percentage: float = Field(..., description="Completed (filtered) vs all jobs, percent")
    total_jobs: int
    filtered_job_count: int
    inventory_value: float = Field(..., description="Current stock value")

    leaderboard: List[TechnicianStandingModel] = []
    top_issues_by_volume: List[IssueStatModel] = []
    top_issues_by_revenue: List[IssueStatModel] = []
    top_brands: List[BrandStatModel] = []
    top_parts_by_quantity: List[PartStatModel] = []
    top_parts_by_revenue: List[PartStatModel] = []

    calculated_at: str


class TechnicianJobLineModel(BaseModel):
    job_id: str
    reference: str
    type: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    revenue: float
    type_label: Optional[str] = None
    status_label: Optional[str] = None


class TechnicianReportResponse(BaseModel):
    """Response for /technician/{technician_id}"""
    technician_id: str
    technician_name: Optional[str] = None
    period: PeriodInfo
    total_revenue: float = Field(..., description="Technician's share of payments in the period")
    total_jobs: int = Field(..., description="Jobs completed in the period")
    active_jobs: int
    assignments: int
    jobs: List[TechnicianJobLineModel] = []
    calculated_at: str


class BusinessSummaryResponse(BaseModel):
    """Response for /summary"""
    period: PeriodInfo
    total_paid: float
    total_invoiced: float
    outstanding: float
    pending_invoice_count: int
    low_stock_count: int
    pending_jobs: int
    active_jobs: int
    completed_jobs: int
    calculated_at: str
