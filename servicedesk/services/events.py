"""
Domain events published by the entity services.

Signals are ``blinker`` signals. Publishers send with themselves as the
sender, so a subscriber connected to one service instance never sees
events from another.
"""

from dataclasses import dataclass
from uuid import UUID

from blinker import Namespace

signals = Namespace()

# Sent by ProjectService when a project first gets a JC or DC reference
# (at creation, or on the update that adds the first one). Receivers are
# called as ``receiver(sender, event=ReferencesPopulated)``.
references_populated = signals.signal("references-populated")


@dataclass(frozen=True)
class ReferencesPopulated:
    project_id: UUID
    actor_id: UUID
