"""
Analytics Endpoints

Workshop performance reporting:
- Period revenue, technician leaderboard, top issues/brands/parts
- Technician drill-down
- Business summary for the admin overview

All endpoints accept start/end (YYYY-MM-DD, default: last 30 days),
a technician filter and repeatable job_types filters.
"""

import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.analytics import AnalyticsEngine, PeriodContext, ALL_TECHNICIANS, to_dict
from app.models.enums import JobType
from app.models.report_models import (
    AnalyticsReportResponse,
    BusinessSummaryResponse,
    TechnicianReportResponse,
)
from app.services.record_store import (
    RecordStore,
    RecordStoreError,
    get_record_store,
    get_workshop_snapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_workshop(workshop_id: Optional[str]) -> str:
    workshop_id = workshop_id or os.getenv("DEFAULT_WORKSHOP_ID")
    if not workshop_id:
        raise HTTPException(status_code=400, detail="workshop_id is required")
    return workshop_id


def get_store() -> RecordStore:
    """Record store dependency; missing credentials become a 500 with detail."""
    try:
        return get_record_store()
    except ValueError as e:
        logger.error(f"[Analytics] Record store not configured: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def _build_context(
    start: Optional[str],
    end: Optional[str],
    technician: Optional[str],
    job_types: Optional[List[str]]
) -> PeriodContext:
    """Parse request filters; missing dates fall back to the last N days."""
    unknown = sorted(set(job_types or []) - set(JobType.values()))
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown job types: {', '.join(unknown)}")

    try:
        if not start and not end:
            days = int(os.getenv("DEFAULT_PERIOD_DAYS", "30"))
            return PeriodContext.last_days(days, technician_id=technician, job_types=job_types)
        if not start or not end:
            raise ValueError("start and end must be provided together")
        return PeriodContext.create(start, end, technician_id=technician, job_types=job_types)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _load_engine(store: RecordStore, workshop_id: str, refresh: bool) -> AnalyticsEngine:
    try:
        snapshot = await get_workshop_snapshot(store, workshop_id, force_refresh=refresh)
    except RecordStoreError as e:
        logger.error(f"[Analytics] {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return AnalyticsEngine(snapshot)


@router.get("/report", response_model=AnalyticsReportResponse)
async def get_report(
    workshop_id: Optional[str] = Query(None, description="Workshop ID (default: DEFAULT_WORKSHOP_ID)"),
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    technician: str = Query(ALL_TECHNICIANS, description="Technician ID or 'all'"),
    job_types: Optional[List[str]] = Query(None, description="Job types to include (repeatable)"),
    refresh: bool = Query(False, description="Bypass the snapshot cache"),
    store: RecordStore = Depends(get_store)
):
    """
    Get the workshop analytics report.

    Returns:
    - Revenue received in the period (payment dates)
    - Technician leaderboard sorted by revenue share
    - Top 5 issues by volume and by revenue
    - Top 5 vehicle brands
    - Top 5 parts by quantity and by revenue
    - Current inventory value and completion progress
    """
    workshop_id = _resolve_workshop(workshop_id)
    context = _build_context(start, end, technician, job_types)
    engine = await _load_engine(store, workshop_id, refresh)

    try:
        return to_dict(engine.compute_report(context))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/technician/{technician_id}", response_model=TechnicianReportResponse)
async def get_technician_report(
    technician_id: str,
    workshop_id: Optional[str] = Query(None, description="Workshop ID (default: DEFAULT_WORKSHOP_ID)"),
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    job_types: Optional[List[str]] = Query(None, description="Job types to include (repeatable)"),
    refresh: bool = Query(False, description="Bypass the snapshot cache"),
    store: RecordStore = Depends(get_store)
):
    """
    Get one technician's performance for the period.

    A job is included when the technician is assigned and it was created,
    completed or paid within the period.
    """
    workshop_id = _resolve_workshop(workshop_id)
    context = _build_context(start, end, None, job_types)
    engine = await _load_engine(store, workshop_id, refresh)

    if engine.snapshot.find_user(technician_id) is None:
        raise HTTPException(status_code=404, detail=f"Technician {technician_id} not found")

    try:
        return to_dict(engine.compute_technician_report(technician_id, context))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/summary", response_model=BusinessSummaryResponse)
async def get_business_summary(
    workshop_id: Optional[str] = Query(None, description="Workshop ID (default: DEFAULT_WORKSHOP_ID)"),
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    technician: str = Query(ALL_TECHNICIANS, description="Technician ID or 'all'"),
    job_types: Optional[List[str]] = Query(None, description="Job types to include (repeatable)"),
    refresh: bool = Query(False, description="Bypass the snapshot cache"),
    store: RecordStore = Depends(get_store)
):
    """
    Get headline business figures: paid, invoiced, outstanding, pending
    invoices, low stock and the job pipeline.
    """
    workshop_id = _resolve_workshop(workshop_id)
    context = _build_context(start, end, technician, job_types)
    engine = await _load_engine(store, workshop_id, refresh)

    try:
        return to_dict(engine.compute_business_summary(context))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
