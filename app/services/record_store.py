"""
Record Store Client

Reads workshop collections (jobs, invoices, inventory, vehicles, users)
from Supabase and returns typed records. The analytics engine only ever
sees fully materialised snapshots produced by load_snapshot().

Also provides:
- InMemoryRecordStore for tests and local experiments
- A TTL snapshot cache keyed by workshop id
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from app.models.enums import UserRole
from app.models.records import (
    InventoryItem,
    Invoice,
    Job,
    Technician,
    Vehicle,
    WorkshopSnapshot,
)

logger = logging.getLogger(__name__)

# Table names
JOBS_TABLE = "jobs"
INVOICES_TABLE = "invoices"
INVENTORY_TABLE = "inventory"
USERS_TABLE = "users"
VEHICLES_TABLE = "vehicles"

DEFAULT_PAGE_SIZE = 1000

# PostgREST encodes in_() filters into the URL
VEHICLE_OWNER_CHUNK = 100

DEFAULT_CACHE_TTL_SECONDS = 300  # 5 minutes


class RecordStoreError(Exception):
    """A collection could not be read from the record store"""

    def __init__(self, collection: str, workshop_id: str, cause: Exception):
        self.collection = collection
        self.workshop_id = workshop_id
        self.cause = cause
        super().__init__(f"Failed to load {collection} for workshop {workshop_id}: {cause}")


class RecordStore:
    """Read operations the analytics engine needs, scoped by workshop."""

    def list_jobs(self, workshop_id: str) -> List[Job]:
        raise NotImplementedError

    def list_invoices(self, workshop_id: str) -> List[Invoice]:
        raise NotImplementedError

    def list_inventory_items(self, workshop_id: str) -> List[InventoryItem]:
        raise NotImplementedError

    def list_vehicles(self, workshop_id: str, owner_ids: Optional[List[str]] = None) -> List[Vehicle]:
        raise NotImplementedError

    def list_users(self, workshop_id: str) -> List[Technician]:
        raise NotImplementedError

    def list_technicians(self, workshop_id: str) -> List[Technician]:
        return [u for u in self.list_users(workshop_id) if u.is_technician]


class SupabaseRecordStore(RecordStore):
    """Record store backed by Supabase tables mirroring the app documents"""

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            supabase_url = os.getenv("SUPABASE_URL")
            supabase_key = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_KEY")

            if not supabase_url or not supabase_key:
                raise ValueError("SUPABASE_URL and SUPABASE_KEY/SUPABASE_SERVICE_KEY required")

            client = create_client(supabase_url, supabase_key)

        self.supabase: Client = client
        self.page_size = int(os.getenv("SUPABASE_PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))

    def _fetch_all(self, table: str, column: str, value: Any) -> List[Dict]:
        """Fetch every row matching column == value (or column in value), page by page."""
        rows: List[Dict] = []
        offset = 0

        while True:
            query = self.supabase.table(table).select("*")
            if isinstance(value, (list, tuple)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)

            result = query.order("id").range(offset, offset + self.page_size - 1).execute()
            page = result.data or []
            rows.extend(page)

            if len(page) < self.page_size:
                break
            offset += self.page_size

        return rows

    def list_jobs(self, workshop_id: str) -> List[Job]:
        return [Job.from_record(r) for r in self._fetch_all(JOBS_TABLE, "workshopId", workshop_id)]

    def list_invoices(self, workshop_id: str) -> List[Invoice]:
        return [Invoice.from_record(r) for r in self._fetch_all(INVOICES_TABLE, "workshopId", workshop_id)]

    def list_inventory_items(self, workshop_id: str) -> List[InventoryItem]:
        return [InventoryItem.from_record(r) for r in self._fetch_all(INVENTORY_TABLE, "workshopId", workshop_id)]

    def list_users(self, workshop_id: str) -> List[Technician]:
        return [Technician.from_record(r) for r in self._fetch_all(USERS_TABLE, "workshopId", workshop_id)]

    def list_vehicles(self, workshop_id: str, owner_ids: Optional[List[str]] = None) -> List[Vehicle]:
        """
        Vehicles belong to customers, so resolve them through the workshop's users.

        Pass owner_ids when the users are already loaded to skip re-reading them.
        """
        if owner_ids is None:
            owner_ids = [u.id for u in self.list_users(workshop_id) if u.id]

        rows: List[Dict] = []
        for i in range(0, len(owner_ids), VEHICLE_OWNER_CHUNK):
            rows.extend(self._fetch_all(VEHICLES_TABLE, "userId", owner_ids[i:i + VEHICLE_OWNER_CHUNK]))
        return [Vehicle.from_record(r) for r in rows]


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store: {workshop_id: {"jobs": [...], ...}}"""

    def __init__(self, workshops: Optional[Dict[str, Dict[str, list]]] = None):
        self.workshops = workshops or {}

    def _collection(self, workshop_id: str, name: str) -> list:
        return list(self.workshops.get(workshop_id, {}).get(name, []))

    def list_jobs(self, workshop_id: str) -> List[Job]:
        return self._collection(workshop_id, "jobs")

    def list_invoices(self, workshop_id: str) -> List[Invoice]:
        return self._collection(workshop_id, "invoices")

    def list_inventory_items(self, workshop_id: str) -> List[InventoryItem]:
        return self._collection(workshop_id, "inventory")

    def list_vehicles(self, workshop_id: str, owner_ids: Optional[List[str]] = None) -> List[Vehicle]:
        return self._collection(workshop_id, "vehicles")

    def list_users(self, workshop_id: str) -> List[Technician]:
        return self._collection(workshop_id, "users")


# ============== Snapshot Loading ==============

async def _read(store: RecordStore, collection: str, method: str, workshop_id: str, *args) -> list:
    try:
        return await asyncio.to_thread(getattr(store, method), workshop_id, *args)
    except Exception as e:
        raise RecordStoreError(collection, workshop_id, e) from e


async def _read_users_and_vehicles(store: RecordStore, workshop_id: str):
    """Vehicles are looked up by owner, so they follow the users read."""
    users = await _read(store, "users", "list_users", workshop_id)
    owner_ids = [u.id for u in users if u.id]
    vehicles = await _read(store, "vehicles", "list_vehicles", workshop_id, owner_ids)
    return users, vehicles


async def load_snapshot(store: RecordStore, workshop_id: str) -> WorkshopSnapshot:
    """
    Fetch every collection for a workshop concurrently.

    Returns only once all collections are materialised.

    Raises:
        RecordStoreError if any read fails
    """
    jobs, invoices, inventory, (users, vehicles) = await asyncio.gather(
        _read(store, "jobs", "list_jobs", workshop_id),
        _read(store, "invoices", "list_invoices", workshop_id),
        _read(store, "inventory", "list_inventory_items", workshop_id),
        _read_users_and_vehicles(store, workshop_id),
    )

    snapshot = WorkshopSnapshot(
        workshop_id=workshop_id,
        jobs=jobs,
        invoices=invoices,
        inventory=inventory,
        vehicles=vehicles,
        technicians=[u for u in users if u.is_technician],
        users=users,
        fetched_at=datetime.now(),
    )

    logger.info(
        f"[RecordStore] Loaded workshop {workshop_id}: jobs={len(jobs)} invoices={len(invoices)} "
        f"inventory={len(inventory)} vehicles={len(vehicles)} technicians={len(snapshot.technicians)}"
    )
    return snapshot


# ============== Cache ==============

_snapshot_cache: Dict[str, WorkshopSnapshot] = {}


def cache_ttl_seconds() -> int:
    return int(os.getenv("SNAPSHOT_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS)))


def _is_expired(snapshot: WorkshopSnapshot) -> bool:
    return (datetime.now() - snapshot.fetched_at).total_seconds() > cache_ttl_seconds()


async def get_workshop_snapshot(
    store: RecordStore,
    workshop_id: str,
    force_refresh: bool = False
) -> WorkshopSnapshot:
    """
    Get a cached workshop snapshot.

    Caches the full collections for SNAPSHOT_CACHE_TTL_SECONDS to avoid re-reading
    the store for every report request.
    """
    if not force_refresh and workshop_id in _snapshot_cache:
        cached = _snapshot_cache[workshop_id]
        if not _is_expired(cached):
            logger.debug(f"[RecordStore] Snapshot cache hit for workshop {workshop_id}")
            return cached

    snapshot = await load_snapshot(store, workshop_id)
    _snapshot_cache[workshop_id] = snapshot
    return snapshot


def clear_snapshot_cache(workshop_id: Optional[str] = None):
    """Clear snapshot cache"""
    if workshop_id:
        _snapshot_cache.pop(workshop_id, None)
    else:
        _snapshot_cache.clear()


# Singleton instance
_record_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Get or create the Supabase record store"""
    global _record_store
    if _record_store is None:
        _record_store = SupabaseRecordStore()
    return _record_store
