"""
Analytics Result Dataclasses

Plain results produced by the aggregation engine, technician drill-down
and business summary. Money is kept unrounded here; rounding happens once
in to_dict() at the response boundary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# ============== Rollup Entries ==============

@dataclass
class TechnicianStanding:
    """Leaderboard row"""
    technician_id: str
    name: str
    total_assigned: int = 0
    completed_jobs: int = 0
    revenue: float = 0.0
    completion_rate: float = 0.0


@dataclass
class IssueStat:
    issue: str
    count: int = 0
    revenue: float = 0.0


@dataclass
class BrandStat:
    brand: str  # first-seen casing
    count: int = 0


@dataclass
class PartStat:
    name: str  # first-seen description
    quantity: float = 0.0
    revenue: float = 0.0


# ============== Reports ==============

@dataclass
class AnalyticsReport:
    """Workshop performance report for one period and filter set"""
    period: Dict[str, Any]
    total_revenue: float
    completed_count: int
    target_percentage: float
    total_jobs: int
    filtered_job_count: int
    inventory_value: float
    leaderboard: List[TechnicianStanding] = field(default_factory=list)
    top_issues_by_volume: List[IssueStat] = field(default_factory=list)
    top_issues_by_revenue: List[IssueStat] = field(default_factory=list)
    top_brands: List[BrandStat] = field(default_factory=list)
    top_parts_by_quantity: List[PartStat] = field(default_factory=list)
    top_parts_by_revenue: List[PartStat] = field(default_factory=list)
    calculated_at: datetime = field(default_factory=datetime.now)


@dataclass
class TechnicianJobLine:
    """One job in a technician's history"""
    job_id: str
    reference: str
    type: Optional[str]
    status: Optional[str]
    created_at: Optional[datetime]
    revenue: float = 0.0
    type_label: Optional[str] = None
    status_label: Optional[str] = None


@dataclass
class TechnicianReport:
    """Single-technician drill-down"""
    technician_id: str
    technician_name: Optional[str]
    period: Dict[str, Any]
    total_revenue: float = 0.0
    total_jobs: int = 0
    active_jobs: int = 0
    assignments: int = 0
    jobs: List[TechnicianJobLine] = field(default_factory=list)
    calculated_at: datetime = field(default_factory=datetime.now)


@dataclass
class BusinessSummary:
    """Headline figures for the admin overview"""
    period: Dict[str, Any]
    total_paid: float = 0.0
    total_invoiced: float = 0.0
    outstanding: float = 0.0
    pending_invoice_count: int = 0
    low_stock_count: int = 0
    pending_jobs: int = 0
    active_jobs: int = 0
    completed_jobs: int = 0
    calculated_at: datetime = field(default_factory=datetime.now)


# ============== Serialization ==============

# Fields rounded to 2 decimals on output
_ROUNDED_FIELDS = {
    "revenue", "total_revenue", "inventory_value", "completion_rate",
    "target_percentage", "total_paid", "total_invoiced", "outstanding",
    "quantity",
}


def to_dict(obj) -> Any:
    """Convert a result dataclass to a JSON-ready dictionary."""
    if hasattr(obj, '__dataclass_fields__'):
        result = {}
        for field_name in obj.__dataclass_fields__:
            value = getattr(obj, field_name)
            if field_name in _ROUNDED_FIELDS and isinstance(value, float):
                result[field_name] = round(value, 2)
            else:
                result[field_name] = to_dict(value)
        return result
    if isinstance(obj, list):
        return [to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj
