"""
Business Summary

Headline figures for the admin overview: cash collected, invoiced and
outstanding amounts, pending invoices, low stock and job pipeline counts.
"""

from app.analytics.job_filter import filter_jobs
from app.analytics.period import PeriodContext
from app.analytics.revenue import invoice_payments_in_period
from app.analytics.results import BusinessSummary
from app.models.enums import JobStatus, PaymentStatus
from app.models.records import WorkshopSnapshot

PENDING_JOB_STATUSES = (JobStatus.RECEIVED.value, JobStatus.DIAGNOSED.value)


def compute_business_summary(snapshot: WorkshopSnapshot, context: PeriodContext) -> BusinessSummary:
    """
    Summarise a workshop for a period.

    total_paid counts every in-window payment, unfiltered. Invoiced and
    pending figures use invoices created in the window (missing createdAt
    counts as now). Job counts use the filtered job set.
    """
    total_paid = sum(invoice_payments_in_period(inv, context) for inv in snapshot.invoices)

    period_invoices = [
        inv for inv in snapshot.invoices
        if context.contains(inv.created_at or context.as_of)
    ]
    total_invoiced = sum(inv.total for inv in period_invoices if inv.is_approved)
    pending_invoices = sum(
        1 for inv in period_invoices if inv.payment_status != PaymentStatus.PAID.value
    )

    filtered = filter_jobs(snapshot.jobs, context)

    return BusinessSummary(
        period=context.describe(),
        total_paid=total_paid,
        total_invoiced=total_invoiced,
        outstanding=total_invoiced - total_paid,
        pending_invoice_count=pending_invoices,
        low_stock_count=sum(1 for item in snapshot.inventory if item.is_low_stock),
        pending_jobs=sum(1 for job in filtered if job.status in PENDING_JOB_STATUSES),
        active_jobs=sum(1 for job in filtered if job.status == JobStatus.REPAIRING.value),
        completed_jobs=sum(1 for job in filtered if job.is_completed),
    )
