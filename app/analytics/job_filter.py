"""
Job Filter

Decides whether a single job belongs to the filtered job set of a report.
The filtered set drives the volume rollups (top issues by volume, brand
frequency, completion counts).
"""

from typing import Iterable, List

from app.analytics.period import PeriodContext
from app.models.records import Job


def technician_matches(job: Job, context: PeriodContext) -> bool:
    """True when there is no technician filter or the job is assigned to it."""
    if not context.has_technician_filter:
        return True
    return job.is_assigned_to(context.technician_id)


def type_matches(job: Job, context: PeriodContext) -> bool:
    if not context.job_types:
        return True
    return job.type in context.job_types


def date_matches(job: Job, context: PeriodContext) -> bool:
    # createdAt missing is a data-quality gap, treated as "now"
    created_at = job.created_at or context.as_of
    return context.contains(created_at)


def matches(job: Job, context: PeriodContext) -> bool:
    return date_matches(job, context) and technician_matches(job, context) and type_matches(job, context)


def filter_jobs(jobs: Iterable[Job], context: PeriodContext) -> List[Job]:
    return [job for job in jobs if matches(job, context)]
