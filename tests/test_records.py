from datetime import date, datetime, timezone, timedelta

from app.models.enums import GENERAL_ISSUE_LABEL
from app.models.records import (
    InventoryItem,
    Invoice,
    InvoiceItem,
    Job,
    Technician,
    to_datetime,
    to_number,
)


def test_technician_ids_prefers_multi_assignment():
    job = Job.from_record({"id": "j", "assignedTechnicianIds": ["a", "b"], "assignedTechnicianId": "c"})
    assert job.technician_ids == ["a", "b"]


def test_technician_ids_falls_back_to_legacy_field():
    assert Job.from_record({"id": "j", "assignedTechnicianId": "c"}).technician_ids == ["c"]
    assert Job.from_record({"id": "j", "assignedTechnicianIds": [], "assignedTechnicianId": "c"}).technician_ids == ["c"]


def test_technician_ids_unassigned_and_deduplicated():
    assert Job.from_record({"id": "j"}).technician_ids == []
    job = Job.from_record({"id": "j", "assignedTechnicianIds": ["a", "b", "a"]})
    assert job.technician_ids == ["a", "b"]
    # stable across calls
    assert job.technician_ids == job.technician_ids


def test_issue_labels_default_to_general():
    assert Job.from_record({"id": "j"}).issue_labels == [GENERAL_ISSUE_LABEL]
    assert Job.from_record({"id": "j", "issues": []}).issue_labels == ["General / Other"]
    assert Job.from_record({"id": "j", "issues": ["Brakes"]}).issue_labels == ["Brakes"]


def test_job_from_record_parses_fields():
    job = Job.from_record({
        "id": "j1",
        "userId": "cust",
        "vehicleId": "veh",
        "type": "tow",
        "status": "completed",
        "createdAt": "2025-01-02T10:00:00Z",
        "completedAt": {"seconds": 1736503200},
        "serviceCharge": "1500",
        "partsUsed": [{"partId": "p", "partName": "Filter", "quantity": 2, "unitPrice": 400}],
    })
    assert job.customer_id == "cust"
    assert job.is_completed
    assert job.created_at == datetime(2025, 1, 2, 10, 0)
    assert job.completed_at == datetime(2025, 1, 10, 10, 0)
    assert job.service_charge == 1500.0
    assert job.parts_used[0].part_name == "Filter"
    assert job.parts_used[0].quantity == 2


def test_to_datetime_variants():
    assert to_datetime(None) is None
    assert to_datetime("not a date") is None
    assert to_datetime(date(2025, 3, 1)) == datetime(2025, 3, 1)
    assert to_datetime(datetime(2025, 3, 1, 12, tzinfo=timezone(timedelta(hours=1)))) == datetime(2025, 3, 1, 11)
    assert to_datetime(1735689600) == datetime(2025, 1, 1)
    assert to_datetime(1735689600000) == datetime(2025, 1, 1)
    assert to_datetime({"_seconds": 1735689600, "_nanoseconds": 0}) == datetime(2025, 1, 1)
    assert to_datetime({"seconds": "n/a"}) is None
    assert to_datetime({"nanoseconds": 5}) is None


def test_to_number_defaults():
    assert to_number(None) == 0.0
    assert to_number("12.5") == 12.5
    assert to_number("abc") == 0.0
    assert to_number(True) == 0.0


def test_invoice_item_total_falls_back_to_quantity_times_price():
    assert InvoiceItem.from_record({"description": "Pad", "quantity": 2, "unitPrice": 3000}).total == 6000
    assert InvoiceItem.from_record({"description": "Pad", "quantity": 2, "unitPrice": 3000, "total": 5500}).total == 5500


def test_invoice_from_record_status_and_payments():
    invoice = Invoice.from_record({
        "id": "inv",
        "jobId": "j1",
        "status": "approved",
        "invoiceStatus": "settled",
        "paymentHistory": [{"amount": 100, "date": "2025-01-05T08:00:00", "method": "cash"}],
    })
    assert invoice.status == "settled"
    assert invoice.is_approved
    assert invoice.payment_history[0].amount == 100
    assert invoice.payment_history[0].method == "cash"

    legacy = Invoice.from_record({"id": "inv", "status": "approved", "paymentHistory": None})
    assert legacy.status == "approved"
    assert legacy.is_approved
    assert legacy.payment_history == []
    assert legacy.job_id is None


def test_inventory_selling_price_takes_precedence():
    item = InventoryItem.from_record({"id": "i", "quantity": 3, "unitPrice": 100, "sellingPrice": 150})
    assert item.valuation_price == 150
    assert item.stock_value == 450

    plain = InventoryItem.from_record({"id": "i", "quantity": 3, "unitPrice": 100})
    assert plain.valuation_price == 100


def test_inventory_low_stock():
    assert InventoryItem(id="i", quantity=5, min_stock_level=5).is_low_stock
    assert not InventoryItem(id="i", quantity=6, min_stock_level=5).is_low_stock


def test_technician_role():
    assert Technician.from_record({"id": "t", "name": "T", "role": "technician"}).is_technician
    assert not Technician.from_record({"id": "c", "name": "C", "role": "customer"}).is_technician


def test_invoice_keeps_both_status_fields():
    invoice = Invoice.from_record({"id": "inv", "status": "approved", "invoiceStatus": "in_progress"})
    assert invoice.legacy_status == "approved"
    assert invoice.invoice_status == "in_progress"
    assert invoice.status == "in_progress"
    assert invoice.is_approved

    assert not Invoice.from_record({"id": "inv", "status": "settled"}).is_approved
    assert not Invoice.from_record({"id": "inv", "invoiceStatus": "draft"}).is_approved


def test_job_with_malformed_timestamp_still_loads():
    job = Job.from_record({"id": "j", "createdAt": {"seconds": "n/a"}, "completedAt": {"_seconds": None}})
    assert job.created_at is None
    assert job.completed_at is None
