import asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from app.services import record_store
from app.services.record_store import (
    InMemoryRecordStore,
    RecordStoreError,
    SupabaseRecordStore,
    get_workshop_snapshot,
    load_snapshot,
)

from conftest import WORKSHOP_ID


# ============== Fake Supabase client ==============

class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []
        self.order_by = None

    def select(self, columns):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.client.in_sizes.append(len(values))
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column):
        self.order_by = column
        return self

    def range(self, start, end):
        self.start, self.end = start, end
        return self

    def execute(self):
        self.client.calls.append((self.table, self.start, self.end))
        self.client.orders.append(self.order_by)
        rows = [r for r in self.client.tables.get(self.table, []) if all(f(r) for f in self.filters)]
        if self.order_by:
            rows.sort(key=lambda row: row[self.order_by])
        return SimpleNamespace(data=rows[self.start:self.end + 1])


class FakeClient:
    def __init__(self, tables):
        self.tables = tables
        self.calls = []
        self.orders = []
        self.in_sizes = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_client():
    return FakeClient({
        "jobs": [
            {"id": f"job-{i}", "workshopId": WORKSHOP_ID, "type": "repair", "status": "received"}
            for i in range(5)
        ] + [{"id": "elsewhere", "workshopId": "ws-2"}],
        "invoices": [{"id": "inv-1", "workshopId": WORKSHOP_ID, "jobId": "job-1",
                      "paymentHistory": [{"amount": 100, "date": "2025-01-07T10:00:00Z"}]}],
        "inventory": [{"id": "i-1", "workshopId": WORKSHOP_ID, "quantity": 3, "unitPrice": 10}],
        "users": [
            {"id": "tech-1", "workshopId": WORKSHOP_ID, "name": "Tess", "role": "technician"},
            {"id": "cust-1", "workshopId": WORKSHOP_ID, "name": "Carl", "role": "customer"},
        ],
        "vehicles": [
            {"id": "veh-1", "userId": "cust-1", "make": "Honda"},
            {"id": "veh-x", "userId": "stranger", "make": "Fiat"},
        ],
    })


# ============== SupabaseRecordStore ==============

def test_supabase_store_pages_through_results(fake_client, monkeypatch):
    monkeypatch.setenv("SUPABASE_PAGE_SIZE", "2")
    store = SupabaseRecordStore(client=fake_client)

    jobs = store.list_jobs(WORKSHOP_ID)
    assert [j.id for j in jobs] == [f"job-{i}" for i in range(5)]
    assert [c for c in fake_client.calls if c[0] == "jobs"] == [("jobs", 0, 1), ("jobs", 2, 3), ("jobs", 4, 5)]
    assert fake_client.orders and all(order == "id" for order in fake_client.orders)


def test_supabase_store_maps_records(fake_client):
    store = SupabaseRecordStore(client=fake_client)

    invoice = store.list_invoices(WORKSHOP_ID)[0]
    assert invoice.job_id == "job-1"
    assert invoice.payment_history[0].date == datetime(2025, 1, 7, 10, 0)

    assert [t.id for t in store.list_technicians(WORKSHOP_ID)] == ["tech-1"]
    assert [v.make for v in store.list_vehicles(WORKSHOP_ID)] == ["Honda"]


def test_supabase_store_chunks_vehicle_owner_lookup():
    users = [{"id": f"cust-{i:03d}", "workshopId": WORKSHOP_ID, "name": "C", "role": "customer"} for i in range(250)]
    vehicles = [{"id": f"veh-{i:03d}", "userId": f"cust-{i:03d}", "make": "Kia"} for i in range(250)]
    client = FakeClient({"users": users, "vehicles": vehicles})
    store = SupabaseRecordStore(client=client)

    found = store.list_vehicles(WORKSHOP_ID, owner_ids=[u["id"] for u in users])

    assert len(found) == 250
    assert client.in_sizes == [100, 100, 50]
    assert not [c for c in client.calls if c[0] == "users"]


def test_supabase_store_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)
    with pytest.raises(ValueError):
        SupabaseRecordStore()


# ============== Snapshot loading ==============

def test_load_snapshot(store):
    snapshot = asyncio.run(load_snapshot(store, WORKSHOP_ID))

    assert snapshot.workshop_id == WORKSHOP_ID
    assert [j.id for j in snapshot.jobs] == ["job-1", "job-2"]
    assert len(snapshot.invoices) == 3
    assert [t.id for t in snapshot.technicians] == ["tech-alice", "tech-bob"]
    assert len(snapshot.users) == 3


def test_load_snapshot_unknown_workshop_is_empty(store):
    snapshot = asyncio.run(load_snapshot(store, "nope"))
    assert snapshot.jobs == [] and snapshot.technicians == []


class BrokenStore(InMemoryRecordStore):
    def list_invoices(self, workshop_id):
        raise ConnectionError("connection reset")


def test_load_snapshot_wraps_failures():
    with pytest.raises(RecordStoreError) as exc_info:
        asyncio.run(load_snapshot(BrokenStore(), WORKSHOP_ID))

    assert exc_info.value.collection == "invoices"
    assert exc_info.value.workshop_id == WORKSHOP_ID
    assert isinstance(exc_info.value.cause, ConnectionError)


# ============== Cache ==============

class CountingStore(InMemoryRecordStore):
    def __init__(self, workshops):
        super().__init__(workshops)
        self.job_reads = 0

    def list_jobs(self, workshop_id):
        self.job_reads += 1
        return super().list_jobs(workshop_id)


def test_snapshot_cache_hits_and_refresh(store):
    counting = CountingStore(store.workshops)

    first = asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    second = asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    assert first is second
    assert counting.job_reads == 1

    third = asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID, force_refresh=True))
    assert third is not first
    assert counting.job_reads == 2


def test_snapshot_cache_expires(store):
    counting = CountingStore(store.workshops)
    first = asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))

    first.fetched_at = datetime.now() - timedelta(seconds=record_store.DEFAULT_CACHE_TTL_SECONDS + 1)
    asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    assert counting.job_reads == 2


def test_clear_snapshot_cache(store):
    counting = CountingStore(store.workshops)
    asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    record_store.clear_snapshot_cache(WORKSHOP_ID)
    asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    assert counting.job_reads == 2


def test_snapshot_cache_ttl_read_from_environment(store, monkeypatch):
    counting = CountingStore(store.workshops)
    first = asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    first.fetched_at = datetime.now() - timedelta(seconds=30)

    monkeypatch.setenv("SNAPSHOT_CACHE_TTL_SECONDS", "10")
    asyncio.run(get_workshop_snapshot(counting, WORKSHOP_ID))
    assert counting.job_reads == 2


class UserCountingStore(InMemoryRecordStore):
    def __init__(self, workshops):
        super().__init__(workshops)
        self.user_reads = 0
        self.owner_ids = None

    def list_users(self, workshop_id):
        self.user_reads += 1
        return super().list_users(workshop_id)

    def list_vehicles(self, workshop_id, owner_ids=None):
        self.owner_ids = owner_ids
        return super().list_vehicles(workshop_id, owner_ids)


def test_load_snapshot_reads_users_once(store):
    counting = UserCountingStore(store.workshops)
    snapshot = asyncio.run(load_snapshot(counting, WORKSHOP_ID))

    assert counting.user_reads == 1
    assert counting.owner_ids == ["tech-alice", "tech-bob", "cust-1"]
    assert len(snapshot.vehicles) == 2
