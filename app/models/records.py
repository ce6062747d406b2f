"""
Workshop Record Dataclasses

Typed views over the loosely-typed documents held by the record store.

All defaulting rules live here so the analytics code never has to guess:
- Timestamps accept datetimes, ISO strings, epoch numbers and
  Firestore-style {"seconds": ...} mappings (normalised to naive UTC)
- Missing numbers become 0, missing lists become []
- Job.technician_ids applies the legacy single-technician fallback
- Job.issue_labels substitutes the "General / Other" label
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from app.models.enums import GENERAL_ISSUE_LABEL, InvoiceStatus, JobStatus, UserRole


# ============== Field Coercion ==============

def to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp to a naive UTC datetime, or None."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        try:
            return to_datetime(float(seconds))
        except (TypeError, ValueError):
            return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds are at least 1e11 for any date after 1973
        seconds = value / 1000 if abs(value) >= 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None

    return None


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a stored amount or quantity to float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def to_optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return to_number(value)


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ============== Jobs ==============

@dataclass
class PartUsed:
    """Part consumed on a job"""
    part_id: Optional[str]
    part_name: str
    quantity: float = 0.0
    unit_price: float = 0.0

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "PartUsed":
        return cls(
            part_id=to_text(data.get("partId")),
            part_name=data.get("partName") or "",
            quantity=to_number(data.get("quantity")),
            unit_price=to_number(data.get("unitPrice")),
        )


@dataclass
class Job:
    """Workshop job (service / repair / tow request)"""
    id: str
    customer_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    workshop_id: Optional[str] = None
    type: Optional[str] = None
    issues: List[str] = field(default_factory=list)
    status: Optional[str] = None
    assigned_technician_ids: Optional[List[str]] = None
    assigned_technician_id: Optional[str] = None  # legacy single technician
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    service_charge: float = 0.0
    parts_used: List[PartUsed] = field(default_factory=list)

    @property
    def technician_ids(self) -> List[str]:
        """
        Effective technician set.

        assignedTechnicianIds when present and non-empty, otherwise the
        legacy assignedTechnicianId, otherwise unassigned. Deduplicated,
        first-seen order.
        """
        source = self.assigned_technician_ids
        if not source:
            source = [self.assigned_technician_id] if self.assigned_technician_id else []

        seen: List[str] = []
        for tech_id in source:
            if tech_id and tech_id not in seen:
                seen.append(tech_id)
        return seen

    def is_assigned_to(self, technician_id: str) -> bool:
        return technician_id in self.technician_ids

    @property
    def issue_labels(self) -> List[str]:
        return list(self.issues) if self.issues else [GENERAL_ISSUE_LABEL]

    @property
    def is_completed(self) -> bool:
        return self.status == JobStatus.COMPLETED.value

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Job":
        raw_ids = data.get("assignedTechnicianIds")
        technician_ids = None
        if isinstance(raw_ids, (list, tuple, set)):
            technician_ids = [str(t) for t in raw_ids if t]

        issues = data.get("issues") or []
        return cls(
            id=str(data.get("id", "")),
            customer_id=to_text(data.get("userId")),
            vehicle_id=to_text(data.get("vehicleId")),
            workshop_id=to_text(data.get("workshopId")),
            type=to_text(data.get("type")),
            issues=[str(i) for i in issues if i],
            status=to_text(data.get("status")),
            assigned_technician_ids=technician_ids,
            assigned_technician_id=to_text(data.get("assignedTechnicianId")),
            created_at=to_datetime(data.get("createdAt")),
            completed_at=to_datetime(data.get("completedAt")),
            service_charge=to_number(data.get("serviceCharge")),
            parts_used=[PartUsed.from_record(p) for p in data.get("partsUsed") or []],
        )


# ============== Invoices ==============

@dataclass
class Payment:
    """Payment recorded against an invoice (append-only)"""
    amount: float
    date: Optional[datetime]
    method: Optional[str] = None
    recorded_by: Optional[str] = None
    recorded_by_name: Optional[str] = None

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Payment":
        return cls(
            amount=to_number(data.get("amount")),
            date=to_datetime(data.get("date")),
            method=to_text(data.get("method")),
            recorded_by=to_text(data.get("recordedBy")),
            recorded_by_name=to_text(data.get("recordedByName")),
        )


@dataclass
class InvoiceItem:
    """Invoice line item"""
    description: str
    quantity: float = 0.0
    unit_price: float = 0.0
    total: float = 0.0

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "InvoiceItem":
        quantity = to_number(data.get("quantity"))
        unit_price = to_number(data.get("unitPrice"))
        total = to_optional_number(data.get("total"))
        if total is None:
            total = quantity * unit_price

        return cls(
            description=data.get("description") or "",
            quantity=quantity,
            unit_price=unit_price,
            total=total,
        )


@dataclass
class Invoice:
    """Invoice with its payment history"""
    id: str
    job_id: Optional[str] = None
    items: List[InvoiceItem] = field(default_factory=list)
    payment_history: List[Payment] = field(default_factory=list)
    total: float = 0.0
    invoice_status: Optional[str] = None
    legacy_status: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def status(self) -> Optional[str]:
        """Workflow status for display; the newer field wins"""
        return self.invoice_status or self.legacy_status

    @property
    def is_approved(self) -> bool:
        # legacy documents only ever recorded "approved"
        return (
            self.legacy_status == InvoiceStatus.APPROVED.value
            or self.invoice_status in (InvoiceStatus.APPROVED.value, InvoiceStatus.SETTLED.value)
        )

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Invoice":
        history = data.get("paymentHistory")
        if not isinstance(history, list):
            history = []

        return cls(
            id=str(data.get("id", "")),
            job_id=to_text(data.get("jobId")),
            items=[InvoiceItem.from_record(i) for i in data.get("items") or []],
            payment_history=[Payment.from_record(p) for p in history if isinstance(p, dict)],
            total=to_number(data.get("total")),
            invoice_status=to_text(data.get("invoiceStatus")),
            legacy_status=to_text(data.get("status")),
            payment_status=to_text(data.get("paymentStatus")),
            created_at=to_datetime(data.get("createdAt")),
        )


# ============== Inventory / Vehicles / Users ==============

@dataclass
class InventoryItem:
    """Stock item"""
    id: str
    name: str = ""
    category: Optional[str] = None
    quantity: float = 0.0
    min_stock_level: float = 0.0
    unit_price: float = 0.0
    selling_price: Optional[float] = None

    @property
    def valuation_price(self) -> float:
        """Selling price when modelled, unit price otherwise"""
        return self.selling_price if self.selling_price is not None else self.unit_price

    @property
    def stock_value(self) -> float:
        return self.quantity * self.valuation_price

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock_level

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "InventoryItem":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            category=to_text(data.get("category")),
            quantity=to_number(data.get("quantity")),
            min_stock_level=to_number(data.get("minStockLevel")),
            unit_price=to_number(data.get("unitPrice")),
            selling_price=to_optional_number(data.get("sellingPrice")),
        )


@dataclass
class Vehicle:
    id: str
    customer_id: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Vehicle":
        return cls(
            id=str(data.get("id", "")),
            customer_id=to_text(data.get("userId")),
            make=to_text(data.get("make")),
            model=to_text(data.get("model")),
        )


@dataclass
class Technician:
    """Workshop user; technicians are users with role=technician"""
    id: str
    name: str
    role: Optional[str] = UserRole.TECHNICIAN.value

    @property
    def is_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN.value

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Technician":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            role=to_text(data.get("role")),
        )


# ============== Snapshot ==============

@dataclass
class WorkshopSnapshot:
    """All collections for one workshop, fully materialised"""
    workshop_id: str
    jobs: List[Job] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    inventory: List[InventoryItem] = field(default_factory=list)
    vehicles: List[Vehicle] = field(default_factory=list)
    technicians: List[Technician] = field(default_factory=list)
    users: List[Technician] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=datetime.now)

    def find_user(self, user_id: str) -> Optional[Technician]:
        for user in self.users or self.technicians:
            if user.id == user_id:
                return user
        return None
