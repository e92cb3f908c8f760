"""
Status Derivation Rules

Pure functions that compute an entity's lifecycle status from its current
(post-merge) sub-fields. ``Cancelled`` is never derived; it is only reached
through an explicit soft delete (or a Maintenance status override).
"""

from typing import Optional, Sequence

from servicedesk.models.domain import LifecycleStatus, ServiceDate


def derive_reference_status(
    jc_references: Optional[Sequence] = None,
    dc_references: Optional[Sequence] = None,
    users: Optional[Sequence] = None,
) -> LifecycleStatus:
    """
    Status of a project or complaint.

    Priority order:
    1. any JC or DC reference -> Completed
    2. any assigned user -> In Progress
    3. otherwise -> Pending
    """
    if jc_references or dc_references:
        return LifecycleStatus.COMPLETED
    if users:
        return LifecycleStatus.IN_PROGRESS
    return LifecycleStatus.PENDING


def derive_maintenance_status(
    service_dates: Optional[Sequence[ServiceDate]] = None,
    users: Optional[Sequence] = None,
) -> LifecycleStatus:
    """
    Status of a maintenance contract.

    Assigned users take precedence over completion: a contract with users
    is In Progress even when every visit is done.
    """
    if users:
        return LifecycleStatus.IN_PROGRESS
    if service_dates and all(sd.is_completed for sd in service_dates):
        return LifecycleStatus.COMPLETED
    return LifecycleStatus.PENDING


def has_references(record) -> bool:
    """True when a project/complaint carries at least one JC or DC reference."""
    return bool(record.jc_references) or bool(record.dc_references)
