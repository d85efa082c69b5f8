"""Domain events emitted by the organization core.

Receivers get the keyword arguments listed next to each signal. All events are
sent through ``transaction.on_commit`` so nothing fires for a rolled back unit
of work; outside a transaction they are sent immediately.
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

organization_created = Signal()  # organization, user
organization_updated = Signal()  # organization, user, changes
organization_deleted = Signal()  # organization_id, organization_name, user
ownership_transferred = Signal()  # organization, previous_owner, new_owner
member_added = Signal()  # organization, user, role
member_removed = Signal()  # organization, user
member_role_changed = Signal()  # organization, user, old_role, new_role
invitation_sent = Signal()  # invitation
invitation_accepted = Signal()  # invitation, user
invitation_declined = Signal()  # invitation
organization_switched = Signal()  # user, organization, previous_organization_id
default_organization_changed = Signal()  # user, organization, previous_organization_id


def emit(signal: Signal, sender, **kwargs) -> None:
    def _send():
        logger.debug('org.event sender=%s keys=%s', getattr(sender, '__name__', sender), sorted(kwargs))
        signal.send(sender=sender, **kwargs)

    transaction.on_commit(_send)
