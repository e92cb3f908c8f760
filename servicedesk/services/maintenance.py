"""
Maintenance Service

Recurring maintenance contracts. Unlike projects and complaints, an
explicit ``status`` in a request overrides the derived one, delete is a
hard delete, and assignment replaces the user list. Completing a visit
rolls the schedule forward by one month.
"""

import calendar
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Sequence
from uuid import UUID, uuid4

from servicedesk.exceptions import NotFoundError, ValidationError
from servicedesk.models.api import MaintenanceCreate, MaintenanceUpdate, ServiceDateInput
from servicedesk.models.domain import (
    LifecycleStatus,
    Maintenance,
    PaymentStatus,
    ServiceDate,
    utcnow,
)
from servicedesk.services import email_templates
from servicedesk.services.notifications import NotificationGateway
from servicedesk.services.repositories import MaintenanceRepository, UserRepository
from servicedesk.services.status_rules import derive_maintenance_status
from servicedesk.services.work_items import to_editable_field, unique_ids
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(days=1)


# ============================================================================
# Schedule rollover
# ============================================================================

def next_month(value: datetime):
    """(year, month) of the calendar month after ``value``"""
    if value.month == 12:
        return value.year + 1, 1
    return value.year, value.month + 1


def move_to_month(template: datetime, year: int, month: int) -> datetime:
    """``template`` with its day-of-month kept, clamped to the length of year/month"""
    last_day = calendar.monthrange(year, month)[1]
    return template.replace(year=year, month=month, day=min(template.day, last_day))


def build_service_date(incoming: ServiceDateInput, previous: Optional[ServiceDate] = None) -> ServiceDate:
    """Stored form of one incoming visit; keeps the matched visit's id when none is sent"""
    if incoming.id is not None:
        entry_id = incoming.id
    elif previous is not None:
        entry_id = previous.id
    else:
        entry_id = uuid4()
    return ServiceDate(
        id=entry_id,
        service_date=incoming.service_date,
        actual_date=incoming.actual_date,
        jc_reference=incoming.jc_reference or "",
        invoice_ref=incoming.invoice_ref or "",
        payment_status=incoming.payment_status or PaymentStatus.PENDING,
        is_completed=bool(incoming.is_completed),
    )


def match_previous(
    original: Sequence[ServiceDate],
    incoming: Sequence[ServiceDateInput],
) -> List[Optional[ServiceDate]]:
    """
    Pair every incoming visit with its pre-update entry.

    An incoming ``id`` that exists in ``original`` wins; otherwise the entry
    at the same position is used, unless another incoming visit already
    claimed it by id. Each original entry is paired at most once; visits
    left without a partner have no previous state.
    """
    by_id = {sd.id: sd for sd in original}
    claimed = {entry.id for entry in incoming if entry.id in by_id}
    taken = set()
    matched = []
    for index, entry in enumerate(incoming):
        if entry.id in by_id and entry.id not in taken:
            before = by_id[entry.id]
        elif entry.id not in by_id and index < len(original) and original[index].id not in claimed | taken:
            before = original[index]
        else:
            before = None
        if before is not None:
            taken.add(before.id)
        matched.append(before)
    return matched


def build_schedule(
    original: Sequence[ServiceDate],
    incoming: Sequence[ServiceDateInput],
):
    """
    Stored visits for an incoming schedule, paired with their pre-update entries.

    Returns:
        (visits, previous) where ids in ``visits`` are unique; a repeated
        id is replaced with a fresh one
    """
    previous = match_previous(original, incoming)
    visits = []
    seen = set()
    for entry, before in zip(incoming, previous):
        visit = build_service_date(entry, before)
        if visit.id in seen:
            visit.id = uuid4()
        seen.add(visit.id)
        visits.append(visit)
    return visits, previous


def find_newly_completed(
    updated: Sequence[ServiceDate],
    previous: Sequence[Optional[ServiceDate]],
) -> Optional[ServiceDate]:
    """First visit that went from not completed to completed, if any"""
    for entry, before in zip(updated, previous):
        if entry.is_completed and before is not None and not before.is_completed:
            return entry
    return None


def roll_forward(completed: ServiceDate, template: Sequence[ServiceDate]) -> List[ServiceDate]:
    """
    Next month's visits, one per template entry.

    The target month follows the completed visit; each generated visit
    keeps its template's day-of-month and time.
    """
    year, month = next_month(completed.service_date)
    return [
        ServiceDate(
            service_date=move_to_month(sd.service_date, year, month),
            actual_date=None,
            jc_reference="",
            invoice_ref="",
            payment_status=PaymentStatus.PENDING,
            is_completed=False,
        )
        for sd in template
    ]


# ============================================================================
# Service
# ============================================================================

class MaintenanceService:
    """Maintenance contracts: CRUD, assignment and visit rollover"""

    def __init__(
        self,
        repository: MaintenanceRepository,
        users: UserRepository,
        notifications: NotificationGateway,
        settings: Optional[Settings] = None,
        clock: Callable = utcnow,
    ):
        self.repository = repository
        self.users = users
        self.notifications = notifications
        self.settings = settings or get_settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> List[Maintenance]:
        return self.repository.find(exclude_cancelled=True)

    def list_for_user(self, user_id: Any) -> List[Maintenance]:
        return self.repository.find(assigned_to=user_id, exclude_cancelled=True)

    def list_by_status(self, status: LifecycleStatus) -> List[Maintenance]:
        return self.repository.find(status=status, exclude_cancelled=True)

    def list_upcoming(self) -> List[Maintenance]:
        """Contracts with an open visit in the next 24 hours"""
        now = self.clock()
        return self.repository.find_upcoming(now, now + UPCOMING_WINDOW)

    def get(self, maintenance_id: UUID) -> Maintenance:
        maintenance = self.repository.get(maintenance_id)
        if maintenance is None:
            raise NotFoundError("Maintenance not found")
        return maintenance

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: MaintenanceCreate, actor_id: UUID) -> Maintenance:
        if not (payload.client_name or "").strip():
            raise ValidationError("Client name is required")

        maintenance = Maintenance(
            client_name=payload.client_name.strip(),
            remarks=to_editable_field(payload.remarks),
            service_dates=build_schedule([], payload.service_dates or [])[0],
            users=unique_ids(payload.users or []),
            created_by=actor_id,
        )
        maintenance.status = payload.status or derive_maintenance_status(
            maintenance.service_dates, maintenance.users
        )
        maintenance = self.repository.insert(maintenance)
        logger.info(f"Created maintenance {maintenance.id} for '{maintenance.client_name}'")

        self._notify_created(maintenance, actor_id)
        return maintenance

    def update(self, maintenance_id: UUID, payload: MaintenanceUpdate) -> Maintenance:
        """
        Partially update a contract.

        When ``serviceDates`` is sent it replaces the schedule, and the first
        visit newly marked completed appends next month's visits, using the
        pre-update schedule as the template.
        """
        maintenance = self.get(maintenance_id)
        fields = payload.model_fields_set
        original = list(maintenance.service_dates)

        if "client_name" in fields:
            if not (payload.client_name or "").strip():
                raise ValidationError("Client name is required")
            maintenance.client_name = payload.client_name.strip()
        if "remarks" in fields and payload.remarks is not None:
            maintenance.remarks = to_editable_field(payload.remarks, maintenance.remarks)
        if "users" in fields:
            maintenance.users = unique_ids(payload.users or [])

        if "service_dates" in fields and payload.service_dates is not None:
            incoming = payload.service_dates
            updated, previous = build_schedule(original, incoming)

            completed = find_newly_completed(updated, previous)
            if completed is not None:
                generated = roll_forward(completed, original)
                updated.extend(generated)
                logger.info(
                    f"Visit {completed.id} of maintenance {maintenance.id} completed; "
                    f"scheduled {len(generated)} visit(s) for the following month"
                )
            maintenance.service_dates = updated

        if "status" in fields and payload.status is not None:
            maintenance.status = payload.status
        else:
            maintenance.status = derive_maintenance_status(maintenance.service_dates, maintenance.users)

        saved = self.repository.save(maintenance)
        if saved is None:
            raise NotFoundError("Maintenance not found")
        return saved

    def delete(self, maintenance_id: UUID) -> None:
        if not self.repository.delete(maintenance_id):
            raise NotFoundError("Maintenance not found")
        logger.info(f"Deleted maintenance {maintenance_id}")

    def assign_users(self, maintenance_id: UUID, user_ids: Optional[Sequence[Any]]) -> Maintenance:
        """Replace the assigned users; every id must name an existing account"""
        maintenance = self.get(maintenance_id)
        if user_ids is None:
            raise ValidationError("User IDs are required")

        requested = unique_ids(user_ids)
        if requested:
            found = self.users.find(ids=requested)
            if len(found) != len(requested):
                raise ValidationError("One or more user IDs are invalid")

        maintenance.users = requested
        maintenance.status = derive_maintenance_status(maintenance.service_dates, requested)
        saved = self.repository.save(maintenance)
        if saved is None:
            raise NotFoundError("Maintenance not found")

        if requested:
            self._notify_assigned(saved, requested)
        return saved

    def _notify_created(self, maintenance: Maintenance, actor_id: UUID) -> None:
        try:
            creator = self.users.get(actor_id)
            brand = self.settings.MAIL_BRAND
            self.notifications.notify_roles(
                subject=f"New Maintenance Created - {brand}",
                html=email_templates.maintenance_created(brand, maintenance, creator),
                push_title="New Maintenance Created",
                push_body=f"{creator.name if creator else 'Someone'} created a maintenance for {maintenance.client_name}",
                push_data={
                    "type": "maintenance_created",
                    "maintenanceId": str(maintenance.id),
                },
            )
        except Exception as e:
            logger.error(f"Failed to send maintenance creation notification: {e}")

    def _notify_assigned(self, maintenance: Maintenance, user_ids: List[UUID]) -> None:
        try:
            brand = self.settings.MAIL_BRAND
            self.notifications.notify_users(
                user_ids,
                "New Maintenance Assignment",
                f"You have been assigned to maintenance for {maintenance.client_name}",
                {
                    "type": "maintenance_assigned",
                    "maintenanceId": str(maintenance.id),
                },
                email_subject="New Maintenance Assignment",
                email_html=email_templates.maintenance_assigned(brand, maintenance),
            )
        except Exception as e:
            logger.error(f"Failed to send maintenance assignment notifications: {e}")
