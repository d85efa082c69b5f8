"""Current-organization resolution for an acting user.

Two tiers, first match wins:

1. the ephemeral per-session override written by a switch (no database write);
2. the durable default stored on the user's ``accounts.Profile``.

If neither resolves to an existing, non-deleted organization the context is
unscoped (``None``). A dangling id never raises.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


def _session_key() -> str:
    return getattr(settings, 'ORG_SESSION_KEY', 'organization_current_id')


def _coerce_id(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _is_authenticated(user) -> bool:
    return bool(user is not None and getattr(user, 'is_authenticated', False))


def organization_exists(org_id: Optional[int]) -> bool:
    from .models import Organization

    if org_id is None:
        return False
    return Organization.objects.filter(pk=org_id).exists()


def get_profile(user):
    from accounts.models import Profile

    profile, _ = Profile.objects.get_or_create(user=user)
    return profile


def stored_default_organization_id(user) -> Optional[int]:
    """Raw durable default, whether or not it still resolves."""
    from accounts.models import Profile

    if not _is_authenticated(user):
        return None
    return (
        Profile.objects.filter(user=user).values_list('default_org_id', flat=True).first()
    )


def store_default_organization_id(user, org_id: Optional[int]) -> None:
    profile = get_profile(user)
    profile.default_org_id = org_id
    profile.save(update_fields=['default_org_id', 'updated_at'])


def has_resolvable_default(user) -> bool:
    return organization_exists(stored_default_organization_id(user))


class OrganizationContext:
    """Resolver bound to one user and (optionally) their session.

    ``session`` is any mutable mapping; Django's ``request.session`` in the
    request path, ``None`` for CLI or background work where only the durable
    default applies.
    """

    def __init__(self, user, session: Optional[MutableMapping[str, Any]] = None):
        self.user = user if _is_authenticated(user) else None
        self.session = session

    @classmethod
    def from_request(cls, request) -> 'OrganizationContext':
        return cls(getattr(request, 'user', None), getattr(request, 'session', None))

    def __repr__(self) -> str:  # pragma: no cover
        return f"<OrganizationContext user={getattr(self.user, 'pk', None)}>"

    # Reads

    def ephemeral_organization_id(self) -> Optional[int]:
        if self.session is None:
            return None
        return _coerce_id(self.session.get(_session_key()))

    def default_organization_id(self) -> Optional[int]:
        org_id = stored_default_organization_id(self.user)
        return org_id if organization_exists(org_id) else None

    def current_organization_id(self) -> Optional[int]:
        if self.user is None:
            return None
        override = self.ephemeral_organization_id()
        if override is not None:
            if organization_exists(override):
                return override
            logger.info('org.context.stale_override user_id=%s org_id=%s', self.user.pk, override)
            self._drop_override()
        return self.default_organization_id()

    def current_organization(self):
        from .models import Organization

        org_id = self.current_organization_id()
        if org_id is None:
            return None
        return Organization.objects.filter(pk=org_id).first()

    # Writes

    def set_ephemeral_organization(self, org_id: Optional[int]) -> None:
        """Switch for this session only; durable storage is untouched."""
        if self.session is None:
            return
        if org_id is None:
            self._drop_override()
        else:
            self.session[_session_key()] = int(org_id)

    def set_default_organization(self, org_id: Optional[int]) -> None:
        if self.user is None:
            return
        store_default_organization_id(self.user, org_id)
        self.set_ephemeral_organization(org_id)

    def clear_session(self) -> None:
        self._drop_override()

    def sync_from_default(self) -> None:
        """Load the durable default into the session overlay (login)."""
        if self.user is None or self.session is None:
            return
        default_id = self.default_organization_id()
        if default_id is not None:
            self.session[_session_key()] = default_id

    def _drop_override(self) -> None:
        if self.session is not None:
            self.session.pop(_session_key(), None)


def resolve_current_organization_id(user, session=None) -> Optional[int]:
    return OrganizationContext(user, session).current_organization_id()
