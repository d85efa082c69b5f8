"""Authorization policy derived from the caller's relationship to an organization.

Relationship is one of ``owner``, ``administrator``, ``member`` or ``stranger``.
Only active memberships count; a suspended member is a stranger here.
"""

from typing import Optional

from .errors import Forbidden
from .models import Organization, Role
from . import membership

OWNER = 'owner'
ADMINISTRATOR = 'administrator'
MEMBER = 'member'
STRANGER = 'stranger'


def _authenticated(user) -> bool:
    return bool(user is not None and getattr(user, 'is_authenticated', False))


def relationship(user, org: Organization) -> str:
    if not _authenticated(user):
        return STRANGER
    if org.is_owned_by(user):
        return OWNER
    m = membership.get_membership(org, user)
    if m is None or not m.is_active:
        return STRANGER
    return ADMINISTRATOR if m.role == Role.ADMINISTRATOR else MEMBER


def view_any(user) -> bool:
    return True


def view(user, org: Organization) -> bool:
    return relationship(user, org) != STRANGER


def create(user) -> bool:
    return _authenticated(user)


def update(user, org: Organization) -> bool:
    return relationship(user, org) in (OWNER, ADMINISTRATOR)


def delete(user, org: Organization) -> bool:
    return relationship(user, org) == OWNER


def restore(user, org: Organization) -> bool:
    return relationship(user, org) == OWNER


def force_delete(user, org: Organization) -> bool:
    return relationship(user, org) == OWNER


def manage_members(user, org: Organization) -> bool:
    return relationship(user, org) in (OWNER, ADMINISTRATOR)


add_member = manage_members
remove_member = manage_members
change_member_role = manage_members


def transfer_ownership(user, org: Organization) -> bool:
    return relationship(user, org) == OWNER


def manage_settings(user, org: Organization) -> bool:
    return relationship(user, org) in (OWNER, ADMINISTRATOR)


def invite(user, org: Organization) -> bool:
    # Owner or any active member may send and resend invitations
    return relationship(user, org) != STRANGER


ABILITIES = {
    'view_any': lambda user, org=None: view_any(user),
    'view': view,
    'create': lambda user, org=None: create(user),
    'update': update,
    'delete': delete,
    'restore': restore,
    'force_delete': force_delete,
    'manage_members': manage_members,
    'add_member': add_member,
    'remove_member': remove_member,
    'change_member_role': change_member_role,
    'transfer_ownership': transfer_ownership,
    'manage_settings': manage_settings,
    'invite': invite,
}


def allows(ability: str, user, org: Optional[Organization] = None) -> bool:
    check = ABILITIES.get(ability)
    if check is None:
        raise KeyError(ability)
    return bool(check(user, org))


def authorize(ability: str, user, org: Optional[Organization] = None, message: Optional[str] = None) -> None:
    if not allows(ability, user, org):
        raise Forbidden(message)
