from __future__ import annotations

import enum


class TicketStatus(enum.StrEnum):
    """State machine for seat allocation tickets."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class InvoiceStatus(enum.StrEnum):
    """Approval state of a generated invoice."""

    PENDING_APPROVAL = "PENDING_APPROVAL"
    PENDING_REVISION = "PENDING_REVISION"
    APPROVED = "APPROVED"


class Role(enum.StrEnum):
    """Role carried by the dev auth headers."""

    PROJECT_PIC = "project_pic"
    BUSINESS_OPS = "business_ops"
    ADMIN = "admin"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    TICKET = "TICKET"
    INVOICE = "INVOICE"
    PROJECT = "PROJECT"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_REVISION = "REQUEST_REVISION"
