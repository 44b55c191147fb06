from sqlmodel import SQLModel

from seatdesk.models.audit import AuditLog
from seatdesk.models.base import TimestampMixin, UUIDBase
from seatdesk.models.enums import AuditAction, AuditEntityType, InvoiceStatus, Role, TicketStatus
from seatdesk.models.facility import Facility, Seat
from seatdesk.models.holiday import Holiday
from seatdesk.models.invoice import Invoice, InvoicePayment, InvoiceSegment
from seatdesk.models.project import Project, WbsEntry
from seatdesk.models.ticket import SeatAllocationTicket

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Facility",
    "Holiday",
    "Invoice",
    "InvoicePayment",
    "InvoiceSegment",
    "InvoiceStatus",
    "Project",
    "Role",
    "SQLModel",
    "Seat",
    "SeatAllocationTicket",
    "TicketStatus",
    "TimestampMixin",
    "UUIDBase",
    "WbsEntry",
]
