"""
Technician Drill-Down

Per-technician view of a period. Inclusion is assignment-then-activity:
the technician must be assigned, and the job must show activity in the
window through any of three anchors:
    a) createdAt in the window
    b) completedAt in the window
    c) a linked invoice has a payment dated in the window

This differs from the global job filter, which only looks at createdAt.
The context's job-type filter applies; its technician filter does not.
"""

from datetime import datetime
from typing import List, Optional

from app.analytics.job_filter import type_matches
from app.analytics.period import PeriodContext
from app.analytics.revenue import RevenueAllocator
from app.analytics.results import TechnicianJobLine, TechnicianReport
from app.models.enums import JobStatus, JobType
from app.models.records import Invoice, Job


def has_activity_in_period(job: Job, allocator: RevenueAllocator, context: PeriodContext) -> bool:
    created_at = job.created_at or context.as_of
    return (
        context.contains(created_at)
        or context.contains(job.completed_at)
        or allocator.has_payment_in_period(job)
    )


def select_technician_jobs(
    technician_id: str,
    jobs: List[Job],
    allocator: RevenueAllocator,
    context: PeriodContext
) -> List[Job]:
    return [
        job for job in jobs
        if job.is_assigned_to(technician_id)
        and type_matches(job, context)
        and has_activity_in_period(job, allocator, context)
    ]


def count_completed(jobs: List[Job], context: PeriodContext) -> int:
    """
    Jobs completed in the window.

    Falls back to createdAt for completed jobs missing completedAt, but only
    when no job carries an in-window completedAt.
    """
    completed = sum(1 for job in jobs if job.is_completed and context.contains(job.completed_at))
    if completed == 0:
        completed = sum(
            1 for job in jobs
            if job.is_completed and job.completed_at is None and context.contains(job.created_at)
        )
    return completed


def compute_technician_report(
    technician_id: str,
    jobs: List[Job],
    invoices: List[Invoice],
    context: PeriodContext,
    technician_name: Optional[str] = None
) -> TechnicianReport:
    """
    Build the drill-down for one technician.

    Revenue is the technician's even-split share of in-window payments on
    each included job. Jobs are listed newest createdAt first.
    """
    if jobs is None or invoices is None:
        raise ValueError("Missing input collections: jobs and invoices are required")

    allocator = RevenueAllocator(invoices, context)
    included = select_technician_jobs(technician_id, jobs, allocator, context)

    lines = [
        TechnicianJobLine(
            job_id=job.id,
            reference=job.id[:8],
            type=job.type,
            status=job.status,
            created_at=job.created_at,
            revenue=allocator.technician_share(job),
            type_label=JobType.to_label(job.type) if job.type else None,
            status_label=JobStatus.to_label(job.status) if job.status else None,
        )
        for job in included
    ]
    lines.sort(key=lambda line: line.created_at or datetime.min, reverse=True)

    return TechnicianReport(
        technician_id=technician_id,
        technician_name=technician_name,
        period=context.describe(),
        total_revenue=sum(line.revenue for line in lines),
        total_jobs=count_completed(included, context),
        active_jobs=sum(1 for job in included if not job.is_completed),
        assignments=len(included),
        jobs=lines,
    )
