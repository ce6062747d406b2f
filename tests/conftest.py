# tests/conftest.py
from datetime import datetime

import pytest

from app.analytics.period import PeriodContext
from app.models.records import (
    InventoryItem,
    Invoice,
    InvoiceItem,
    Job,
    Payment,
    Technician,
    Vehicle,
    WorkshopSnapshot,
)
from app.services.record_store import InMemoryRecordStore, clear_snapshot_cache

WORKSHOP_ID = "ws-1"


def make_job(job_id="job-1", **overrides) -> Job:
    data = dict(
        id=job_id,
        type="repair",
        status="received",
        created_at=datetime(2025, 1, 6, 9, 0),
    )
    data.update(overrides)
    return Job(**data)


def make_invoice(invoice_id="inv-1", job_id=None, payments=(), items=(), **overrides) -> Invoice:
    history = [Payment(amount=amount, date=when) for amount, when in payments]
    return Invoice(
        id=invoice_id,
        job_id=job_id,
        payment_history=history,
        items=[InvoiceItem(description=d, quantity=q, unit_price=p, total=q * p) for d, q, p in items],
        **overrides
    )


def make_tech(tech_id, name=None) -> Technician:
    return Technician(id=tech_id, name=name or tech_id.title(), role="technician")


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_snapshot_cache()
    yield
    clear_snapshot_cache()


@pytest.fixture
def as_of():
    return datetime(2025, 1, 20, 12, 0)


@pytest.fixture
def window(as_of):
    """Jan 5 - Jan 15 2025, no filters"""
    return PeriodContext.create("2025-01-05", "2025-01-15", as_of=as_of)


@pytest.fixture
def technicians():
    return [make_tech("tech-alice", "Alice"), make_tech("tech-bob", "Bob")]


@pytest.fixture
def snapshot(technicians):
    jobs = [
        make_job("job-1", assigned_technician_ids=["tech-alice", "tech-bob"],
                 issues=["Brakes"], vehicle_id="veh-1", status="completed",
                 completed_at=datetime(2025, 1, 8)),
        make_job("job-2", assigned_technician_id="tech-alice", issues=["Engine", "Brakes"],
                 vehicle_id="veh-2", type="service"),
    ]
    invoices = [
        make_invoice("inv-1", job_id="job-1", payments=[(10000, datetime(2025, 1, 7, 14))],
                     items=[("Brake Pad", 2, 3000), ("Labour Fee", 1, 4000)]),
        make_invoice("inv-2", job_id="job-2", payments=[(3000, datetime(2025, 1, 9))]),
        make_invoice("inv-3", payments=[(500, datetime(2025, 1, 10))]),
    ]
    users = technicians + [Technician(id="cust-1", name="Customer One", role="customer")]
    return WorkshopSnapshot(
        workshop_id=WORKSHOP_ID,
        jobs=jobs,
        invoices=invoices,
        inventory=[InventoryItem(id="i-1", name="Oil", quantity=10, unit_price=500, min_stock_level=5)],
        vehicles=[Vehicle(id="veh-1", make="Toyota"), Vehicle(id="veh-2", make="toyota")],
        technicians=technicians,
        users=users,
    )


@pytest.fixture
def store(snapshot):
    return InMemoryRecordStore({
        WORKSHOP_ID: {
            "jobs": snapshot.jobs,
            "invoices": snapshot.invoices,
            "inventory": snapshot.inventory,
            "vehicles": snapshot.vehicles,
            "users": snapshot.users,
        }
    })
