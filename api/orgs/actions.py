"""Organization lifecycle actions: create, update, delete, transfer, switch.

Each action validates every guard before it mutates anything, runs its writes
in one transaction and emits its domain event only after commit. Callers get a
typed ``OrganizationError`` on failure (see ``orgs.errors``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils.crypto import get_random_string
from django.utils.text import slugify

from app.common import keys

from . import membership, policies, signals
from .context import OrganizationContext, has_resolvable_default, store_default_organization_id
from .errors import (
    CannotDeleteCurrent,
    DuplicateDefaultOrganization,
    Forbidden,
    HasActiveMembers,
    LastOrganization,
    NotFound,
    OrganizationError,
    SlugCollision,
    ValidationFailed,
    translate_storage_errors,
)
from .identity import display_name, first_name
from .models import Organization
from .org_settings import flatten_errors
from .serializers import OrganizationFieldsSerializer

logger = logging.getLogger(__name__)

SLUG_ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'


def generate_slug(name: str) -> str:
    """``slugify(name)-xxxxxx``, re-drawn while the candidate is already taken."""
    length = int(getattr(settings, 'ORG_SLUG_SUFFIX_LENGTH', 6))
    attempts = max(1, int(getattr(settings, 'ORG_SLUG_MAX_ATTEMPTS', 5)))
    base = (slugify(name) or 'organization')[: 255 - length - 1].strip('-') or 'organization'
    for _ in range(attempts):
        candidate = f'{base}-{get_random_string(length, SLUG_ALPHABET)}'
        if not Organization.all_objects.filter(slug=candidate).exists():
            return candidate
    logger.warning('org.slug.exhausted base=%s attempts=%s', base, attempts)
    raise SlugCollision()


def _validate_fields(data: Mapping[str, Any], organization: Optional[Organization] = None) -> Dict[str, Any]:
    serializer = OrganizationFieldsSerializer(data=dict(data), organization=organization)
    if not serializer.is_valid():
        errors: Dict[str, List[str]] = {}
        flatten_errors(serializer.errors, '', errors)
        raise ValidationFailed(errors)
    return dict(serializer.validated_data)


def _integrity_failure(name: str, exclude_pk: Optional[int] = None) -> OrganizationError:
    # Unique violations on write come from either the active-name or the slug constraint
    clash = Organization.objects.filter(name=name)
    if exclude_pk is not None:
        clash = clash.exclude(pk=exclude_pk)
    if clash.exists():
        return ValidationFailed({'name': [keys.t('orgs.validation.name_unique')]})
    return SlugCollision()


# Create


def can_create_default_organization(user) -> bool:
    """True when the user has no default or the stored default no longer resolves."""
    return not has_resolvable_default(user)


@translate_storage_errors
def create_organization(
    user, *, default: bool = True, name: Optional[str] = None, description: Optional[str] = None
) -> Organization:
    if default and not can_create_default_organization(user):
        raise DuplicateDefaultOrganization()

    person = display_name(user)
    org_name = name if name is not None else keys.t('orgs.defaults.name', first_name=first_name(user))
    if description is None:
        key = 'orgs.defaults.custom_description' if name is not None else 'orgs.defaults.description'
        description = keys.t(key, display_name=person)

    fields = _validate_fields({'name': org_name, 'description': description})

    with transaction.atomic():
        slug = generate_slug(fields['name'])
        try:
            with transaction.atomic():
                org = Organization.objects.create(
                    name=fields['name'],
                    slug=slug,
                    description=fields.get('description'),
                    owner=user,
                )
        except IntegrityError as exc:
            raise _integrity_failure(fields['name']) from exc
        if default:
            store_default_organization_id(user, org.pk)

    logger.info('org.created org_id=%s owner_id=%s default=%s', org.pk, user.pk, default)
    signals.emit(signals.organization_created, Organization, organization=org, user=user)
    return org


def create_additional_organization(user, name: str, description: Optional[str] = None) -> Organization:
    return create_organization(user, default=False, name=name, description=description)


# Update


@translate_storage_errors
def update_organization(org: Organization, user, data: Mapping[str, Any]) -> Organization:
    if not policies.update(user, org):
        raise Forbidden(keys.t('orgs.errors.update_forbidden'))

    with transaction.atomic():
        try:
            locked = Organization.objects.select_for_update().get(pk=org.pk)
        except Organization.DoesNotExist as exc:
            raise NotFound('Organization') from exc

        payload: Dict[str, Any] = {'name': data['name'] if 'name' in data else locked.name}
        if 'description' in data:
            payload['description'] = data['description']
        validated = _validate_fields(payload, organization=locked)

        changes: Dict[str, Any] = {}
        if validated['name'] != locked.name:
            locked.name = validated['name']
            locked.slug = generate_slug(locked.name)
            changes['name'] = locked.name
            changes['slug'] = locked.slug
        if 'description' in validated and validated['description'] != locked.description:
            locked.description = validated['description']
            changes['description'] = locked.description

        if changes:
            update_fields = [f for f in ('name', 'slug', 'description') if f in changes] + ['updated_at']
            try:
                with transaction.atomic():
                    locked.save(update_fields=update_fields)
            except IntegrityError as exc:
                raise _integrity_failure(locked.name, exclude_pk=locked.pk) from exc

    for field, value in changes.items():
        setattr(org, field, value)
    logger.info('org.updated org_id=%s user_id=%s fields=%s', locked.pk, user.pk, ','.join(sorted(changes)))
    signals.emit(signals.organization_updated, Organization, organization=locked, user=user, changes=changes)
    return locked


@translate_storage_errors
def update_settings(org: Organization, user, patch: Mapping[str, Any], replace: bool = False) -> Organization:
    """Deep-merge ``patch`` into the settings document, or onto fresh defaults when ``replace``."""
    policies.authorize('manage_settings', user, org)
    with transaction.atomic():
        try:
            locked = Organization.objects.select_for_update().get(pk=org.pk)
        except Organization.DoesNotExist as exc:
            raise NotFound('Organization') from exc
        if replace:
            locked.reset_settings_to_defaults()
        locked.merge_settings(patch)
        # save() validates the document before writing
        locked.save(update_fields=['settings', 'updated_at'])
    org.settings = locked.settings
    logger.info('org.settings_updated org_id=%s user_id=%s replace=%s', locked.pk, user.pk, replace)
    signals.emit(
        signals.organization_updated,
        Organization,
        organization=locked,
        user=user,
        changes={'settings': dict(patch)},
    )
    return locked


# Delete


@translate_storage_errors
def deletion_blocker(org: Organization, user, context: Optional[OrganizationContext] = None):
    """First failing delete guard, or ``None``.

    Order is fixed: owner, last organization, current organization, active members.
    """
    if not org.is_owned_by(user):
        return Forbidden(keys.t('orgs.errors.delete_owner_only'))
    if Organization.objects.filter(owner=user).count() <= 1:
        return LastOrganization()
    ctx = context if context is not None else OrganizationContext(user)
    if ctx.current_organization_id() == org.pk:
        return CannotDeleteCurrent()
    if membership.active_members_excluding_owner(org).exists():
        return HasActiveMembers()
    return None


@translate_storage_errors
def can_delete(org: Organization, user, context: Optional[OrganizationContext] = None) -> Dict[str, Any]:
    blocker = deletion_blocker(org, user, context)
    if blocker is None:
        return {'can_delete': True, 'reason': None, 'code': None}
    return {'can_delete': False, 'reason': blocker.message, 'code': blocker.code}


def deletion_requirements() -> List[str]:
    return [keys.t(f'orgs.deletion.requirements.{n}') for n in ('one', 'two', 'three', 'four')]


@translate_storage_errors
def delete_organization(org: Organization, user, context: Optional[OrganizationContext] = None) -> Dict[str, Any]:
    """Permanently delete ``org``; guards are re-checked under row locks."""
    with transaction.atomic():
        try:
            locked = Organization.objects.select_for_update().get(pk=org.pk)
        except Organization.DoesNotExist as exc:
            raise NotFound('Organization') from exc
        # Serialize concurrent deletes by the same owner around the last-organization guard
        list(Organization.objects.select_for_update().filter(owner_id=locked.owner_id).values_list('pk', flat=True))

        blocker = deletion_blocker(locked, user, context)
        if blocker is not None:
            raise blocker

        org_id, org_name = locked.pk, locked.name
        locked.delete()
        signals.emit(
            signals.organization_deleted,
            Organization,
            organization_id=org_id,
            organization_name=org_name,
            user=user,
        )

    logger.info('org.deleted org_id=%s owner_id=%s', org_id, user.pk)
    return {
        'success': True,
        'message': keys.t('orgs.deletion.deleted', name=org_name),
        'deleted_organization_id': org_id,
        'deleted_organization_name': org_name,
    }


@translate_storage_errors
def soft_delete_organization(org: Organization, user) -> Organization:
    policies.authorize('delete', user, org, keys.t('orgs.errors.delete_owner_only'))
    org.soft_delete()
    logger.info('org.soft_deleted org_id=%s user_id=%s', org.pk, user.pk)
    return org


@translate_storage_errors
def restore_organization(org: Organization, user) -> Organization:
    policies.authorize('restore', user, org)
    try:
        with transaction.atomic():
            org.restore()
    except IntegrityError as exc:
        org.deleted_at = Organization.all_objects.filter(pk=org.pk).values_list('deleted_at', flat=True).first()
        raise ValidationFailed({'name': [keys.t('orgs.validation.name_unique')]}) from exc
    logger.info('org.restored org_id=%s user_id=%s', org.pk, user.pk)
    return org


# Ownership


@translate_storage_errors
def transfer_ownership(org: Organization, new_owner) -> Organization:
    """Reassign the owner. Callers check ``policies.transfer_ownership`` first."""
    with transaction.atomic():
        try:
            locked = Organization.objects.select_for_update().select_related('owner').get(pk=org.pk)
        except Organization.DoesNotExist as exc:
            raise NotFound('Organization') from exc
        previous_owner = locked.owner
        locked.owner = new_owner
        locked.save(update_fields=['owner', 'updated_at'])
    org.owner = new_owner
    logger.info('org.ownership_transferred org_id=%s from=%s to=%s', locked.pk, previous_owner.pk, new_owner.pk)
    signals.emit(
        signals.ownership_transferred,
        Organization,
        organization=locked,
        previous_owner=previous_owner,
        new_owner=new_owner,
    )
    return locked


# Switching


def _check_access(context: OrganizationContext, org: Organization) -> None:
    user = context.user
    if user is None or not (org.is_owned_by(user) or membership.has_active_member(org, user)):
        raise Forbidden(keys.t('orgs.errors.switch_forbidden'))


def switch_organization(context: OrganizationContext, org: Organization) -> Organization:
    """Make ``org`` current for this session only."""
    _check_access(context, org)
    previous = context.current_organization_id()
    context.set_ephemeral_organization(org.pk)
    logger.info('org.switched user_id=%s org_id=%s previous=%s', context.user.pk, org.pk, previous)
    signals.emit(
        signals.organization_switched,
        Organization,
        user=context.user,
        organization=org,
        previous_organization_id=previous,
    )
    return org


@translate_storage_errors
def make_default_organization(context: OrganizationContext, org: Organization) -> Organization:
    """Persist ``org`` as the user's default and make it current."""
    _check_access(context, org)
    previous = context.default_organization_id()
    context.set_default_organization(org.pk)
    logger.info('org.default_changed user_id=%s org_id=%s previous=%s', context.user.pk, org.pk, previous)
    signals.emit(
        signals.default_organization_changed,
        Organization,
        user=context.user,
        organization=org,
        previous_organization_id=previous,
    )
    return org
