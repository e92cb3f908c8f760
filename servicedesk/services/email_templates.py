"""
HTML bodies for notification and account emails.
"""

from datetime import datetime
from html import escape
from typing import Iterable, Optional, Sequence, Tuple

from servicedesk.models.domain import Complaint, Invoice, Maintenance, Project, User, utcnow

ACCENT = "#A82F39"


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else "Not set"


def _rows(rows: Iterable[Tuple[str, Optional[str]]]) -> str:
    return "".join(
        f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>"
        for label, value in rows
        if value is not None
    )


def _layout(brand: str, heading: str, intro: str, details_title: str, rows: Sequence, outro: str) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {ACCENT};">{escape(heading)}</h2>
  <p>{escape(intro)}</p>
  <div style="background-color: #f0f9ff; padding: 20px; margin: 20px 0; border-radius: 8px;">
    <h3 style="color: {ACCENT}; margin: 0 0 15px 0;">{escape(details_title)}</h3>
    {_rows(rows)}
  </div>
  <p>{escape(outro)}</p>
  <hr style="margin: 30px 0;">
  <p style="color: #666; font-size: 12px;">This is an automated notification from {escape(brand)}.</p>
</div>
"""


def _creator(creator: Optional[User]) -> str:
    if creator is None:
        return "Unknown (No email)"
    return f"{creator.name} ({creator.email})"


def _refs(refs) -> Optional[str]:
    values = [ref.value for ref in refs]
    return ", ".join(values) if values else None


def project_created(brand: str, project: Project, creator: Optional[User]) -> str:
    return _layout(
        brand,
        "New Project Created",
        f"A new project has been created in the {brand} system.",
        "Project Details:",
        [
            ("Client Name", project.client_name or "Not specified"),
            ("Description", project.description or "No description provided"),
            ("Status", project.status.value),
            ("Due Date", _fmt_date(project.due_date)),
            ("PO Number", project.po.value or None),
            ("Quotation", project.quotation.value or None),
            ("Created By", _creator(creator)),
            ("Created At", _fmt_date(project.created_at)),
            ("Survey Photos", f"{len(project.survey_photos)} photo(s) uploaded" if project.survey_photos else None),
            ("JC References", _refs(project.jc_references)),
            ("DC References", _refs(project.dc_references)),
        ],
        "Please review the project in the admin dashboard.",
    )


def complaint_created(brand: str, complaint: Complaint, creator: Optional[User]) -> str:
    visits = ", ".join(_fmt_date(d) for d in complaint.visit_dates) or "No visits scheduled"
    return _layout(
        brand,
        "New Complaint Created",
        f"A new complaint has been submitted in the {brand} system.",
        "Complaint Details:",
        [
            ("Complaint Reference", complaint.complaint_reference or None),
            ("Client Name", complaint.client_name or "Not specified"),
            ("Description", complaint.description or "No description provided"),
            ("Priority", complaint.priority.value),
            ("Status", complaint.status.value),
            ("Due Date", _fmt_date(complaint.due_date)),
            ("Visit Dates", visits),
            ("PO Number", complaint.po.value or None),
            ("Created By", _creator(creator)),
            ("Created At", _fmt_date(complaint.created_at)),
        ],
        "Please review the complaint in the admin dashboard.",
    )


def invoice_created(brand: str, invoice: Invoice, creator: Optional[User], project: Optional[Project]) -> str:
    rows = [
        ("Invoice Reference", invoice.invoice_reference or "Not specified"),
        ("Amount", invoice.amount),
        ("Payment Terms", invoice.payment_terms.value),
        ("Credit Days", f"{invoice.credit_days} days" if invoice.credit_days else None),
        ("Status", invoice.status.value),
        ("Invoice Date", _fmt_date(invoice.invoice_date)),
        ("Due Date", _fmt_date(invoice.due_date)),
        ("Created By", _creator(creator)),
        ("Project Client", project.client_name if project else "No project associated"),
    ]
    return _layout(
        brand,
        "New Invoice Created",
        f"A new invoice has been generated in the {brand} system.",
        "Invoice Details:",
        rows,
        "Please review the invoice in the admin dashboard.",
    )


def invoice_auto_created(brand: str, invoice: Invoice, project: Optional[Project]) -> str:
    return _layout(
        brand,
        "Invoice Automatically Created",
        "An invoice has been automatically created due to JC/DC references being added to a project.",
        "Invoice Details:",
        [
            ("Project Client", project.client_name if project else "Unknown Client"),
            ("Invoice Reference", invoice.invoice_reference or "Not set"),
            ("Amount", invoice.amount),
            ("Payment Terms", invoice.payment_terms.value),
            ("Status", invoice.status.value),
            ("Created At", _fmt_date(utcnow())),
        ],
        "Please review and update the invoice details in the admin dashboard.",
    )


def maintenance_created(brand: str, maintenance: Maintenance, creator: Optional[User]) -> str:
    return _layout(
        brand,
        "New Maintenance Created",
        f"A new maintenance contract has been created in the {brand} system.",
        "Maintenance Details:",
        [
            ("Client", maintenance.client_name),
            ("Service Dates", str(len(maintenance.service_dates))),
            ("Created By", _creator(creator)),
        ],
        "Please review the maintenance schedule in the admin dashboard.",
    )


def maintenance_assigned(brand: str, maintenance: Maintenance) -> str:
    return _layout(
        brand,
        "New Maintenance Assignment",
        f"You have been assigned to maintenance for {maintenance.client_name}.",
        "Maintenance Details:",
        [
            ("Client", maintenance.client_name),
            ("Service Dates", ", ".join(_fmt_date(sd.service_date) for sd in maintenance.service_dates) or None),
        ],
        "Please check your app for more details.",
    )


def account_approved(brand: str, user: User) -> str:
    return _layout(
        brand,
        "Account Approved!",
        f"Hi {user.name}, your account has been approved and you can now access the {brand} system.",
        "Account Details:",
        [
            ("Name", user.name),
            ("Email", user.email),
            ("Role", user.role.value.capitalize()),
            ("Department", user.department.value.capitalize() if user.department else None),
        ],
        "You can now sign in to your account and start using the platform.",
    )


def password_reset(brand: str, user: User, code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {ACCENT};">Password Reset Request</h2>
  <p>Hi {escape(user.name)},</p>
  <p>You have requested to reset your password. Please use the following verification code:</p>
  <div style="background-color: #f5f5f5; padding: 20px; text-align: center; margin: 20px 0;">
    <h1 style="color: {ACCENT}; font-size: 36px; margin: 0; letter-spacing: 5px;">{escape(code)}</h1>
  </div>
  <p><strong>Important:</strong> This code will expire in {minutes} minute(s) for security reasons.</p>
  <p>If you didn't request this password reset, please ignore this email.</p>
  <hr style="margin: 30px 0;">
  <p style="color: #666; font-size: 12px;">This is an automated message from {escape(brand)}. Please do not reply to this email.</p>
</div>
"""
