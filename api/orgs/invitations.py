"""Invitation state machine: pending -> accepted | declined, expiry derived.

``expired`` is never stored: it is ``pending and now > expires_at``. Accept and
decline are one-shot and run under a row lock so two concurrent calls cannot
both succeed. The storage layer also enforces one pending invitation per
(organization, email).
"""

from __future__ import annotations

import logging
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.utils import timezone

from app.common import keys

from . import membership, policies, signals
from .errors import (
    ActiveInvitationExists,
    AlreadyMember,
    AlreadyResolved,
    EmailMismatch,
    Expired,
    Forbidden,
    InvalidEmail,
    NotFound,
    ValidationFailed,
    translate_storage_errors,
)
from .identity import email_of, normalize_email
from .models import Organization, OrgInvite, Role

logger = logging.getLogger(__name__)


def _clean_email(email: Optional[str]) -> str:
    email = normalize_email(email)
    try:
        validate_email(email)
    except DjangoValidationError as exc:
        raise InvalidEmail() from exc
    return email


def _check_role(role) -> str:
    if role not in Role.values:
        raise ValidationFailed({'role': [f'Unknown role "{role}".']})
    return str(role)


def _check_days(expiration_days: Optional[int]) -> Optional[int]:
    if expiration_days is None:
        return None
    if int(expiration_days) < 1:
        raise ValidationFailed({'expiration_days': ['Must be at least 1 day.']})
    return int(expiration_days)


def _lock(invitation: OrgInvite) -> OrgInvite:
    try:
        locked = OrgInvite.objects.select_for_update().select_related('org').get(pk=invitation.pk)
    except OrgInvite.DoesNotExist as exc:
        raise NotFound('Invitation') from exc
    if not locked.org.is_active():
        raise NotFound('Organization')
    return locked


def _refresh_from(target: OrgInvite, source: OrgInvite) -> None:
    for field in ('token', 'user_id', 'accepted_at', 'declined_at', 'expires_at', 'updated_at'):
        setattr(target, field, getattr(source, field))


@translate_storage_errors
def send_invitation(
    org: Organization,
    inviter,
    email: str,
    role: str = Role.MEMBER,
    expiration_days: Optional[int] = None,
) -> OrgInvite:
    email = _clean_email(email)
    if not org.is_active():
        raise NotFound('Organization')
    if not policies.invite(inviter, org):
        raise Forbidden(keys.t('orgs.errors.invite_forbidden'))
    role = _check_role(role)
    expiration_days = _check_days(expiration_days)
    if membership.has_active_member_with_email(org, email):
        raise AlreadyMember()

    with transaction.atomic():
        # Serializes against a concurrent soft delete of the organization
        if Organization.objects.select_for_update().filter(pk=org.pk).first() is None:
            raise NotFound('Organization')
        pending = list(
            OrgInvite.objects.select_for_update().filter(
                org=org, email=email, accepted_at__isnull=True, declined_at__isnull=True
            )
        )
        if any(not inv.is_expired() for inv in pending):
            raise ActiveInvitationExists()
        # Expired rows would still hold the pending-email constraint slot
        now = timezone.now()
        for stale in pending:
            stale.deleted_at = now
            stale.save(update_fields=['deleted_at', 'updated_at'])

        try:
            with transaction.atomic():
                invitation = OrgInvite.objects.create(
                    org=org,
                    invited_by=inviter,
                    email=email,
                    role=role,
                    expires_at=OrgInvite.expiry_from_now(expiration_days),
                )
        except IntegrityError as exc:
            raise ActiveInvitationExists() from exc

    logger.info('org.invite.sent org_id=%s invite_id=%s role=%s', org.pk, invitation.pk, role)
    signals.emit(signals.invitation_sent, OrgInvite, invitation=invitation)
    return invitation


@translate_storage_errors
def accept_invitation(invitation: OrgInvite, user) -> Organization:
    """Accept for ``user``; the membership row and acceptance commit together."""
    with transaction.atomic():
        locked = _lock(invitation)
        if not locked.is_pending():
            raise AlreadyResolved('accepted' if locked.is_accepted() else 'declined')
        if locked.is_expired():
            raise Expired()
        acceptor_email = email_of(user)
        if not acceptor_email or acceptor_email != normalize_email(locked.email):
            raise EmailMismatch()
        current = membership.get_membership(locked.org, user)
        if current is not None and current.is_active:
            raise AlreadyMember()

        locked.user = user
        locked.accepted_at = timezone.now()
        locked.save(update_fields=['user', 'accepted_at', 'updated_at'])
        if current is None:
            membership.add_member(locked.org, user, role=locked.role)
        else:
            membership.reactivate_member(locked.org, user, role=locked.role)
        signals.emit(signals.invitation_accepted, OrgInvite, invitation=locked, user=user)

    _refresh_from(invitation, locked)
    logger.info('org.invite.accepted org_id=%s invite_id=%s user_id=%s', locked.org_id, locked.pk, user.pk)
    return locked.org


@translate_storage_errors
def decline_invitation(invitation: OrgInvite, user=None) -> OrgInvite:
    """Decline; when ``user`` is given their email must match the invitation."""
    with transaction.atomic():
        locked = _lock(invitation)
        if not locked.is_pending():
            raise AlreadyResolved('accepted' if locked.is_accepted() else 'declined')
        if locked.is_expired():
            raise Expired()
        if user is not None and email_of(user) != normalize_email(locked.email):
            raise EmailMismatch()
        locked.declined_at = timezone.now()
        locked.save(update_fields=['declined_at', 'updated_at'])
        signals.emit(signals.invitation_declined, OrgInvite, invitation=locked)

    _refresh_from(invitation, locked)
    logger.info('org.invite.declined org_id=%s invite_id=%s', locked.org_id, locked.pk)
    return invitation


@translate_storage_errors
def resend_invitation(invitation: OrgInvite, user, expiration_days: Optional[int] = None) -> OrgInvite:
    """Issue a new token and expiry on the same row.

    Allowed while pending, including after expiry.
    """
    if not policies.invite(user, invitation.org):
        raise Forbidden(keys.t('orgs.errors.resend_forbidden'))
    expiration_days = _check_days(expiration_days)
    with transaction.atomic():
        locked = _lock(invitation)
        if not locked.is_pending():
            raise AlreadyResolved('accepted' if locked.is_accepted() else 'declined')
        locked.token = OrgInvite.generate_token()
        locked.expires_at = OrgInvite.expiry_from_now(expiration_days)
        locked.save(update_fields=['token', 'expires_at', 'updated_at'])
        signals.emit(signals.invitation_sent, OrgInvite, invitation=locked)

    _refresh_from(invitation, locked)
    logger.info('org.invite.resent org_id=%s invite_id=%s', locked.org_id, locked.pk)
    return invitation


# Lookups


def find_invitation_by_token(token: str) -> OrgInvite:
    invitation = OrgInvite.objects.select_related('org').filter(token=token).first() if token else None
    if invitation is None or not invitation.org.is_active():
        raise NotFound('Invitation')
    return invitation


def pending_invitations(org: Organization):
    return OrgInvite.objects.filter(org=org, accepted_at__isnull=True, declined_at__isnull=True).order_by('-created_at')


def pending_invitations_for_email(email: str):
    return (
        OrgInvite.objects.filter(
            email=normalize_email(email),
            accepted_at__isnull=True,
            declined_at__isnull=True,
            expires_at__gt=timezone.now(),
            org__deleted_at__isnull=True,
        )
        .select_related('org')
        .order_by('-created_at')
    )
