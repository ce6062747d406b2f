"""
Revenue Allocator

Revenue-in-period is cash collected inside the window: the sum of payment
amounts whose payment date falls in [start, end]. Invoice and job dates
play no part, so an invoice settled over several visits only contributes
the payments made inside the window.

Job revenue attributed to technicians is split evenly across the job's
effective technician set.
"""

from typing import Dict, Iterable, List, Optional

from app.analytics.period import PeriodContext
from app.models.records import Invoice, Job


def invoice_payments_in_period(invoice: Invoice, context: PeriodContext) -> float:
    """Sum of the invoice's payments dated inside the window."""
    return sum(p.amount for p in invoice.payment_history if context.contains(p.date))


def invoice_has_payment_in_period(invoice: Invoice, context: PeriodContext) -> bool:
    return any(context.contains(p.date) for p in invoice.payment_history)


def index_invoices_by_job(invoices: Iterable[Invoice]) -> Dict[str, List[Invoice]]:
    """Group invoices by linked job id; standalone invoices are left out."""
    index: Dict[str, List[Invoice]] = {}
    for invoice in invoices:
        if invoice.job_id:
            index.setdefault(invoice.job_id, []).append(invoice)
    return index


class RevenueAllocator:
    """
    Computes period revenue per job over a pre-indexed invoice set.

    Results are memoised per job id; the allocator is bound to one
    context and must not be reused across contexts.
    """

    def __init__(self, invoices: Iterable[Invoice], context: PeriodContext):
        self.context = context
        self._by_job = index_invoices_by_job(invoices)
        self._revenue_cache: Dict[str, float] = {}

    def invoices_for(self, job_id: str) -> List[Invoice]:
        return self._by_job.get(job_id, [])

    def job_revenue(self, job: Job) -> float:
        """Total period revenue for the job across all of its invoices."""
        cached = self._revenue_cache.get(job.id)
        if cached is not None:
            return cached

        revenue = sum(
            invoice_payments_in_period(invoice, self.context)
            for invoice in self.invoices_for(job.id)
        )
        self._revenue_cache[job.id] = revenue
        return revenue

    def has_payment_in_period(self, job: Job) -> bool:
        return any(
            invoice_has_payment_in_period(invoice, self.context)
            for invoice in self.invoices_for(job.id)
        )

    def technician_share(self, job: Job) -> float:
        """
        One technician's share of the job's period revenue.

        An unassigned job divides by 1; nobody receives that share.
        """
        return self.job_revenue(job) / (len(job.technician_ids) or 1)

    def shares(self, job: Job) -> Dict[str, float]:
        """Per-technician shares; empty for unassigned jobs."""
        share = self.technician_share(job)
        return {tech_id: share for tech_id in job.technician_ids}

    def share_for(self, job: Job, technician_id: str) -> float:
        if not job.is_assigned_to(technician_id):
            return 0.0
        return self.technician_share(job)


def revenue_in_period(
    job: Job,
    invoices: Iterable[Invoice],
    context: PeriodContext,
    technician_id: Optional[str] = None
) -> float:
    """
    Period revenue for a single job.

    With technician_id, returns that technician's even-split share instead
    (0 when the technician is not assigned).
    """
    allocator = RevenueAllocator(invoices, context)
    if technician_id is not None:
        return allocator.share_for(job, technician_id)
    return allocator.job_revenue(job)
