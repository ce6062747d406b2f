"""
Workshop Status Codes and Enums

Standardized constants for workshop record values.
Reference: values written by the workshop web and mobile apps.
"""

from enum import Enum
from typing import List


class JobType(str, Enum):
    """Job request types"""
    SERVICE = "service"
    REPAIR = "repair"
    TOW = "tow"
    COMPLAINT = "complaint"
    SERVICE_AND_REPAIR = "service_and_repair"

    @classmethod
    def values(cls) -> List[str]:
        return [t.value for t in cls]

    @classmethod
    def to_label(cls, job_type: str) -> str:
        labels = {
            cls.SERVICE.value: "Service",
            cls.REPAIR.value: "Repair",
            cls.TOW.value: "Tow",
            cls.COMPLAINT.value: "Complaint",
            cls.SERVICE_AND_REPAIR.value: "Service & Repair"
        }
        return labels.get(job_type, f"Unknown ({job_type})")


class JobStatus(str, Enum):
    """Job lifecycle status"""
    RECEIVED = "received"
    DIAGNOSED = "diagnosed"
    REPAIRING = "repairing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def to_label(cls, status: str) -> str:
        labels = {
            cls.RECEIVED.value: "Received",
            cls.DIAGNOSED.value: "Diagnosed",
            cls.REPAIRING.value: "Repairing",
            cls.COMPLETED.value: "Completed",
            cls.CANCELLED.value: "Cancelled"
        }
        return labels.get(status, f"Unknown ({status})")


class InvoiceStatus(str, Enum):
    """Invoice workflow status (legacy `status` and newer `invoiceStatus`)"""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    SETTLED = "settled"
    VOID = "void"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    """Invoice payment status"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_PAID = "partially_paid"


class UserRole(str, Enum):
    """Workshop user roles"""
    CUSTOMER = "customer"
    ADMIN = "admin"
    TECHNICIAN = "technician"
    STOREKEEPER = "storekeeper"
    ACCOUNTANT = "accountant"
    SERVICE_ADVISOR = "service_advisor"
    VENDOR = "vendor"
    SUPER_ADMIN = "super_admin"


# Issue label substituted when a job has no recorded issues
GENERAL_ISSUE_LABEL = "General / Other"
