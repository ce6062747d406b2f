"""
Analytics Aggregation Engine

Turns a workshop's raw records into the dashboard report:
- Period revenue (payment-date windowed, consistent with the mobile app)
- Technician leaderboard (even-split revenue, completion rates)
- Top issues by volume and by revenue
- Top vehicle brands
- Top parts by quantity and by revenue
- Inventory valuation and completion progress

Pure computation over in-memory lists: inputs are never mutated and the
same inputs with the same context always produce the same report.

Note on issue rollups: volume counts only the filtered job set, while
revenue scans every job with period revenue regardless of technician or
type filters. The dashboard has always behaved this way; it is kept for
compatibility and has been raised with the product owners.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from app.analytics.job_filter import filter_jobs, technician_matches, type_matches
from app.analytics.period import PeriodContext
from app.analytics.revenue import RevenueAllocator, invoice_has_payment_in_period, invoice_payments_in_period
from app.analytics.results import (
    AnalyticsReport,
    BrandStat,
    BusinessSummary,
    IssueStat,
    PartStat,
    TechnicianReport,
    TechnicianStanding,
)
from app.analytics.summary import compute_business_summary
from app.analytics.technician import compute_technician_report
from app.models.records import InventoryItem, Invoice, Job, Technician, Vehicle, WorkshopSnapshot

logger = logging.getLogger(__name__)

TOP_N = 5

# Invoice lines that are labour charges rather than parts
LABOUR_MARKER = "LABOUR"
SERVICE_LINE = "SERVICE"

T = TypeVar("T")


def top_n(entries: Iterable[T], key: Callable[[T], float], n: int = TOP_N) -> List[T]:
    """Highest first; ties keep encounter order (sorted() is stable with reverse=True)."""
    return sorted(entries, key=key, reverse=True)[:n]


def placeholder_technician_name(technician_id: str) -> str:
    return f"Tech {technician_id[:4]}"


def require_collections(**collections) -> None:
    """All inputs must be loaded (possibly empty) before aggregation starts."""
    missing = [name for name, value in collections.items() if value is None]
    if missing:
        raise ValueError(f"Missing input collections: {', '.join(missing)}")


def is_part_line(description: str) -> bool:
    key = description.upper()
    return LABOUR_MARKER not in key and key != SERVICE_LINE


# ============== Rollups ==============

def compute_total_revenue(
    invoices: List[Invoice],
    jobs_by_id: Dict[str, Job],
    context: PeriodContext
) -> float:
    """
    In-window payments across all invoices.

    Payments on job-linked invoices count only when the owning job passes
    the technician/type filter; a linked job that no longer exists drops
    its payments. Standalone invoices always count.
    """
    total = 0.0
    for invoice in invoices:
        amount = invoice_payments_in_period(invoice, context)
        if not amount:
            continue

        if invoice.job_id:
            job = jobs_by_id.get(invoice.job_id)
            if job is None:
                continue
            if not (technician_matches(job, context) and type_matches(job, context)):
                continue

        total += amount
    return total


def build_leaderboard(
    jobs: List[Job],
    technicians: List[Technician],
    allocator: RevenueAllocator,
    context: PeriodContext,
    directory: Optional[List[Technician]] = None
) -> List[TechnicianStanding]:
    """
    Leaderboard across the whole job book (no date filter on membership).

    Every known technician gets a row; technicians seen only through job
    assignments get a row named from the user directory or a placeholder.
    """
    names = {user.id: user.name for user in (directory or technicians)}
    standings: Dict[str, TechnicianStanding] = {}

    for tech in technicians:
        standings[tech.id] = TechnicianStanding(technician_id=tech.id, name=tech.name)

    for job in jobs:
        if not (technician_matches(job, context) and type_matches(job, context)):
            continue

        tech_ids = job.technician_ids
        if not tech_ids:
            continue

        if job.completed_at is not None:
            completed_in_period = job.is_completed and context.contains(job.completed_at)
        else:
            # older jobs were completed without a completedAt stamp
            completed_in_period = job.is_completed and context.contains(job.created_at)

        share = allocator.technician_share(job)

        for tech_id in tech_ids:
            standing = standings.get(tech_id)
            if standing is None:
                standing = TechnicianStanding(
                    technician_id=tech_id,
                    name=names.get(tech_id) or placeholder_technician_name(tech_id)
                )
                standings[tech_id] = standing

            standing.total_assigned += 1
            if completed_in_period:
                standing.completed_jobs += 1
            if share > 0:
                standing.revenue += share

    for standing in standings.values():
        if standing.total_assigned > 0:
            standing.completion_rate = standing.completed_jobs / standing.total_assigned * 100
        else:
            standing.completion_rate = 0.0

    return top_n(standings.values(), key=lambda s: s.revenue, n=len(standings))


def rank_issues(
    filtered_jobs: List[Job],
    all_jobs: List[Job],
    allocator: RevenueAllocator
) -> Dict[str, List[IssueStat]]:
    """Top issues by volume (filtered jobs) and by revenue (all paid jobs)."""
    counts: Dict[str, int] = {}
    for job in filtered_jobs:
        for issue in job.issue_labels:
            counts[issue] = counts.get(issue, 0) + 1

    revenue: Dict[str, float] = {}
    for job in all_jobs:
        job_revenue = allocator.job_revenue(job)
        if job_revenue <= 0:
            continue
        for issue in job.issue_labels:
            revenue[issue] = revenue.get(issue, 0.0) + job_revenue

    by_volume = [
        IssueStat(issue=issue, count=count, revenue=revenue.get(issue, 0.0))
        for issue, count in counts.items()
    ]
    by_revenue = [
        IssueStat(issue=issue, count=counts.get(issue, 0), revenue=amount)
        for issue, amount in revenue.items()
    ]

    return {
        "by_volume": top_n(by_volume, key=lambda s: s.count),
        "by_revenue": top_n(by_revenue, key=lambda s: s.revenue),
    }


def rank_brands(filtered_jobs: List[Job], vehicles: List[Vehicle]) -> List[BrandStat]:
    vehicles_by_id = {v.id: v for v in vehicles}
    brands: Dict[str, BrandStat] = {}

    for job in filtered_jobs:
        if not job.vehicle_id:
            continue
        vehicle = vehicles_by_id.get(job.vehicle_id)
        if vehicle is None or not vehicle.make:
            continue

        key = vehicle.make.upper()
        if key not in brands:
            brands[key] = BrandStat(brand=vehicle.make)
        brands[key].count += 1

    return top_n(brands.values(), key=lambda b: b.count)


def rank_parts(
    invoices: List[Invoice],
    jobs_by_id: Dict[str, Job],
    context: PeriodContext
) -> Dict[str, List[PartStat]]:
    """
    Parts sold on invoices with a payment in the window.

    Linked invoices are subject to the technician/type filter through their
    job; standalone invoices (or ones whose job is gone) always count.
    Labour lines are excluded.
    """
    parts: Dict[str, PartStat] = {}

    for invoice in invoices:
        if not invoice_has_payment_in_period(invoice, context):
            continue

        if invoice.job_id:
            job = jobs_by_id.get(invoice.job_id)
            if job is not None and not (technician_matches(job, context) and type_matches(job, context)):
                continue

        for item in invoice.items:
            if not item.description or not is_part_line(item.description):
                continue

            key = item.description.upper()
            if key not in parts:
                parts[key] = PartStat(name=item.description)
            parts[key].quantity += item.quantity
            parts[key].revenue += item.total

    return {
        "by_quantity": top_n(parts.values(), key=lambda p: p.quantity),
        "by_revenue": top_n(parts.values(), key=lambda p: p.revenue),
    }


def compute_inventory_value(inventory: List[InventoryItem]) -> float:
    """Current stock value; not windowed."""
    return sum(item.stock_value for item in inventory)


# ============== Report ==============

def compute_report(
    jobs: List[Job],
    invoices: List[Invoice],
    inventory: List[InventoryItem],
    vehicles: List[Vehicle],
    technicians: List[Technician],
    context: PeriodContext,
    users: Optional[List[Technician]] = None
) -> AnalyticsReport:
    """
    Compute the full workshop report for a period and filter set.

    Args:
        jobs, invoices, inventory, vehicles, technicians: full unfiltered
            workshop collections (empty lists allowed, None is not)
        context: period and filters
        users: optional full user directory, used to name technicians that
            appear on jobs but are not in the technician list

    Raises:
        ValueError if any collection is None
    """
    require_collections(
        jobs=jobs, invoices=invoices, inventory=inventory,
        vehicles=vehicles, technicians=technicians
    )

    jobs_by_id = {job.id: job for job in jobs}
    allocator = RevenueAllocator(invoices, context)
    filtered = filter_jobs(jobs, context)

    issues = rank_issues(filtered, jobs, allocator)
    parts = rank_parts(invoices, jobs_by_id, context)

    completed_count = sum(1 for job in filtered if job.is_completed)
    # progress is measured against the whole book of jobs, not the filtered subset
    target_percentage = (completed_count / len(jobs) * 100) if jobs else 0.0

    report = AnalyticsReport(
        period=context.describe(),
        total_revenue=compute_total_revenue(invoices, jobs_by_id, context),
        completed_count=completed_count,
        target_percentage=target_percentage,
        total_jobs=len(jobs),
        filtered_job_count=len(filtered),
        inventory_value=compute_inventory_value(inventory),
        leaderboard=build_leaderboard(jobs, technicians, allocator, context, directory=users),
        top_issues_by_volume=issues["by_volume"],
        top_issues_by_revenue=issues["by_revenue"],
        top_brands=rank_brands(filtered, vehicles),
        top_parts_by_quantity=parts["by_quantity"],
        top_parts_by_revenue=parts["by_revenue"],
    )

    logger.debug(
        f"[Analytics] Report {context.describe()}: jobs={len(jobs)} filtered={len(filtered)} "
        f"revenue={report.total_revenue:.2f}"
    )
    return report


class AnalyticsEngine:
    """Report entry points bound to one workshop snapshot."""

    def __init__(self, snapshot: WorkshopSnapshot):
        require_collections(
            jobs=snapshot.jobs, invoices=snapshot.invoices, inventory=snapshot.inventory,
            vehicles=snapshot.vehicles, technicians=snapshot.technicians
        )
        self.snapshot = snapshot

    def compute_report(self, context: PeriodContext) -> AnalyticsReport:
        s = self.snapshot
        return compute_report(
            s.jobs, s.invoices, s.inventory, s.vehicles, s.technicians,
            context, users=s.users or None
        )

    def compute_technician_report(self, technician_id: str, context: PeriodContext) -> TechnicianReport:
        s = self.snapshot
        user = s.find_user(technician_id)
        return compute_technician_report(
            technician_id, s.jobs, s.invoices, context,
            technician_name=user.name if user else None
        )

    def compute_business_summary(self, context: PeriodContext) -> BusinessSummary:
        return compute_business_summary(self.snapshot, context)
