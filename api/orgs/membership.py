"""Membership store: (organization, user) -> {role, is_active}.

Every query takes the organization explicitly; membership lookups are not
subject to the current-organization context.
"""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q

from .errors import AlreadyMember, NotFound, ValidationFailed, translate_storage_errors
from .models import Organization, OrgUser, Role
from . import signals

logger = logging.getLogger(__name__)


def _check_role(role) -> str:
    if role not in Role.values:
        raise ValidationFailed({'role': [f'Unknown role "{role}".']})
    return str(role)


@translate_storage_errors
def add_member(org: Organization, user, role: str = Role.MEMBER, is_active: bool = True) -> OrgUser:
    role = _check_role(role)
    try:
        # Savepoint so a duplicate does not poison an enclosing transaction
        with transaction.atomic():
            membership = OrgUser.objects.create(org=org, user=user, role=role, is_active=is_active)
    except IntegrityError as exc:
        raise AlreadyMember() from exc
    logger.info('org.member.added org_id=%s user_id=%s role=%s', org.pk, user.pk, role)
    signals.emit(signals.member_added, OrgUser, organization=org, user=user, role=role)
    return membership


@translate_storage_errors
def reactivate_member(org: Organization, user, role: str = Role.MEMBER) -> OrgUser:
    """Turn a suspended membership back on with ``role``; active rows raise ``AlreadyMember``."""
    role = _check_role(role)
    with transaction.atomic():
        try:
            membership = OrgUser.objects.select_for_update().get(org=org, user=user)
        except OrgUser.DoesNotExist as exc:
            raise NotFound('Membership') from exc
        if membership.is_active:
            raise AlreadyMember()
        membership.is_active = True
        membership.role = role
        membership.save(update_fields=['is_active', 'role', 'updated_at'])
    logger.info('org.member.reactivated org_id=%s user_id=%s role=%s', org.pk, user.pk, role)
    signals.emit(signals.member_added, OrgUser, organization=org, user=user, role=role)
    return membership


@translate_storage_errors
def remove_member(org: Organization, user) -> None:
    deleted, _ = OrgUser.objects.filter(org=org, user=user).delete()
    if not deleted:
        raise NotFound('Membership')
    logger.info('org.member.removed org_id=%s user_id=%s', org.pk, user.pk)
    signals.emit(signals.member_removed, OrgUser, organization=org, user=user)


@translate_storage_errors
def update_role(org: Organization, user, role: str) -> OrgUser:
    role = _check_role(role)
    with transaction.atomic():
        try:
            membership = OrgUser.objects.select_for_update().get(org=org, user=user)
        except OrgUser.DoesNotExist as exc:
            raise NotFound('Membership') from exc
        old_role = membership.role
        if old_role == role:
            return membership
        membership.role = role
        membership.save(update_fields=['role', 'updated_at'])
    logger.info('org.member.role_changed org_id=%s user_id=%s old=%s new=%s', org.pk, user.pk, old_role, role)
    signals.emit(
        signals.member_role_changed, OrgUser, organization=org, user=user, old_role=old_role, new_role=role
    )
    return membership


@translate_storage_errors
def set_active(org: Organization, user, is_active: bool) -> None:
    membership = OrgUser.objects.filter(org=org, user=user).first()
    if membership is None:
        raise NotFound('Membership')
    membership.is_active = bool(is_active)
    membership.save(update_fields=['is_active', 'updated_at'])


# Queries


def get_membership(org: Organization, user) -> Optional[OrgUser]:
    if user is None or getattr(user, 'pk', None) is None:
        return None
    return OrgUser.objects.filter(org=org, user=user).first()


def role_of(org: Organization, user) -> Optional[str]:
    membership = get_membership(org, user)
    return membership.role if membership else None


def is_owner(org: Organization, user) -> bool:
    return org.is_owned_by(user)


def has_member(org: Organization, user) -> bool:
    return get_membership(org, user) is not None


def has_active_member(org: Organization, user) -> bool:
    membership = get_membership(org, user)
    return bool(membership and membership.is_active)


def is_active_administrator(org: Organization, user) -> bool:
    membership = get_membership(org, user)
    return bool(membership and membership.is_active and membership.role == Role.ADMINISTRATOR)


def list_members(org: Organization):
    return OrgUser.objects.filter(org=org).select_related('user').order_by('created_at', 'id')


def list_active(org: Organization):
    return org.active_users().order_by('pk')


def list_by_role(org: Organization, role: str):
    return org.users_with_role(_check_role(role)).order_by('pk')


def active_members_excluding_owner(org: Organization):
    return OrgUser.objects.filter(org=org, is_active=True).exclude(user_id=org.owner_id)


def has_active_member_with_email(org: Organization, email: str) -> bool:
    return OrgUser.objects.filter(org=org, is_active=True, user__email__iexact=email).exists()


# User-side views


def organizations_for(user):
    """Organizations the user owns or holds any membership in."""
    return Organization.objects.filter(Q(owner=user) | Q(memberships__user=user)).distinct()


def visible_organizations(user):
    """Organizations the user owns or is an active member of."""
    return Organization.objects.filter(
        Q(owner=user) | Q(memberships__user=user, memberships__is_active=True)
    ).distinct()


def owned_organizations(user):
    return Organization.objects.filter(owner=user)


def active_organizations(user):
    return Organization.objects.filter(memberships__user=user, memberships__is_active=True)


def administrated_organizations(user):
    return Organization.objects.filter(
        memberships__user=user, memberships__is_active=True, memberships__role=Role.ADMINISTRATOR
    )


def belongs_to_organization(user, org: Organization) -> bool:
    return org.is_owned_by(user) or has_member(org, user)


def is_administrator_of(user, org: Organization) -> bool:
    return org.is_owned_by(user) or is_active_administrator(org, user)


def is_member_of(user, org: Organization) -> bool:
    return is_administrator_of(user, org) or has_active_member(org, user)


def find_user_by_email(email: str):
    User = get_user_model()
    user = User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        raise NotFound('User')
    return user
