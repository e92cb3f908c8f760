"""
Shared behaviour for reference-tracked work items (projects and complaints).

Both entities derive their status from JC/DC references and assigned
users, are soft-deleted by moving to Cancelled, and notify newly assigned
users. Subclasses supply the model, the wording and the create path.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, Sequence, TypeVar
from uuid import UUID

from servicedesk.exceptions import NotFoundError, ValidationError
from servicedesk.models.api import ApiModel, EditableFieldInput
from servicedesk.models.domain import EditableField, LifecycleStatus, Record, utcnow
from servicedesk.services.notifications import NotificationGateway
from servicedesk.services.repositories import Repository, UserRepository
from servicedesk.services.status_rules import derive_reference_status
from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


def to_editable_field(
    incoming: Optional[EditableFieldInput],
    current: Optional[EditableField] = None,
) -> EditableField:
    """
    Build the stored form of a client-supplied reference.

    ``is_edited`` is copied as sent. When replacing an existing value the
    original creation time is kept.
    """
    now = utcnow()
    if incoming is None:
        return current or EditableField(created_at=now, updated_at=now)
    return EditableField(
        value=incoming.value.strip(),
        is_edited=incoming.is_edited,
        created_at=current.created_at if current else now,
        updated_at=now,
    )


def to_editable_list(items: Optional[Iterable[EditableFieldInput]]) -> List[EditableField]:
    return [to_editable_field(item) for item in (items or [])]


def unique_ids(ids: Iterable[Any]) -> List[UUID]:
    """Deduplicate ids preserving first-seen order."""
    seen = set()
    result = []
    for raw in ids:
        value = raw if isinstance(raw, UUID) else UUID(str(raw))
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class WorkItemService(ABC, Generic[T]):
    """Reads, partial updates, soft delete and assignment for one work-item type"""

    noun = "Item"
    editable_fields: Sequence[str] = ("po", "quotation", "remarks")
    reference_lists: Sequence[str] = ("jc_references", "dc_references")
    nullable_fields: Sequence[str] = ("due_date",)

    def __init__(
        self,
        repository: Repository[T],
        users: UserRepository,
        notifications: NotificationGateway,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.users = users
        self.notifications = notifications
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> List[T]:
        return self.repository.find(exclude_cancelled=True)

    def list_for_user(self, user_id: Any) -> List[T]:
        return self.repository.find(assigned_to=user_id, exclude_cancelled=True)

    def list_by_status(self, status: LifecycleStatus) -> List[T]:
        return self.repository.find(status=status, exclude_cancelled=True)

    def get(self, record_id: UUID) -> T:
        record = self.repository.get(record_id)
        if record is None:
            raise NotFoundError(f"{self.noun} not found")
        return record

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def delete(self, record_id: UUID) -> T:
        """Soft delete: the record stays stored with status Cancelled"""
        record = self.get(record_id)
        record.status = LifecycleStatus.CANCELLED
        saved = self.repository.save(record)
        logger.info(f"{self.noun} {record_id} cancelled")
        return saved

    def assign_users(self, record_id: UUID, user_ids: Optional[Sequence[Any]]) -> T:
        """
        Add users to the item (set union), re-derive status and notify the
        users that were not assigned before.
        """
        if user_ids is None:
            raise ValidationError("User IDs are required")

        record = self.get(record_id)
        requested = unique_ids(user_ids)
        previous = set(record.users)
        newly_assigned = [uid for uid in requested if uid not in previous]

        record.users = list(record.users) + newly_assigned
        record.status = derive_reference_status(record.jc_references, record.dc_references, record.users)
        saved = self._save(record)

        if newly_assigned:
            try:
                self._notify_assigned(saved, newly_assigned)
            except Exception as e:
                logger.error(f"Failed to send {self.noun.lower()} assignment notifications: {e}")

        return saved

    def _save(self, record: T) -> T:
        saved = self.repository.save(record)
        if saved is None:
            raise NotFoundError(f"{self.noun} not found")
        return saved

    def _merge(self, record: T, payload: ApiModel) -> T:
        """
        Apply the fields present in ``payload`` onto ``record``.

        Fields the client omitted keep their stored values; an explicit
        null only clears nullable fields.
        """
        for name in payload.model_fields_set:
            if name not in type(record).model_fields or name == "status":
                continue
            value = getattr(payload, name)

            if name == "client_name":
                if not (value or "").strip():
                    raise ValidationError("Client name is required")
                record.client_name = value.strip()
            elif name in self.editable_fields:
                setattr(record, name, to_editable_field(value, getattr(record, name)))
            elif name in self.reference_lists:
                setattr(record, name, to_editable_list(value))
            elif name == "users":
                record.users = unique_ids(value or [])
            elif value is None:
                if name in self.nullable_fields:
                    setattr(record, name, None)
            else:
                setattr(record, name, value)

        record.status = derive_reference_status(record.jc_references, record.dc_references, record.users)
        return record

    @abstractmethod
    def _notify_assigned(self, record: T, user_ids: List[UUID]) -> None:
        """Push and mail the newly assigned users; each work-item type words its own notice"""
        raise NotImplementedError

    def _creator(self, user_id: Any):
        try:
            return self.users.get(user_id)
        except Exception as e:
            logger.warning(f"Could not load creator {user_id}: {e}")
            return None
