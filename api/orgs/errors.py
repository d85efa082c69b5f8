"""Typed failures raised by the organization core.

Every business-rule violation is an ``OrganizationError`` subclass carrying a
stable ``code`` (used by the request layer and CLI), a user-presentable message
taken from ``locales/en.yml`` and optional structured ``meta``. Only
``StorageUnavailable`` is retryable.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from django.db import OperationalError

from app.common import keys

logger = logging.getLogger(__name__)


class OrganizationError(Exception):
    code = 'organization_error'
    message_key = 'orgs.errors.generic'
    retryable = False

    def __init__(self, message: Optional[str] = None, *, meta: Optional[Dict[str, Any]] = None, **params: Any):
        self.params = params
        self.meta = dict(meta or {})
        self.message = message or keys.t(self.message_key, **params)
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'code': self.code, 'message': self.message}
        if self.meta:
            data['meta'] = self.meta
        return data


class InvalidEmail(OrganizationError):
    code = 'invalid_email'
    message_key = 'orgs.errors.invalid_email'


class Forbidden(OrganizationError):
    code = 'forbidden'
    message_key = 'orgs.errors.forbidden'


class DuplicateDefaultOrganization(OrganizationError):
    code = 'duplicate_default_organization'
    message_key = 'orgs.errors.duplicate_default'


class LastOrganization(OrganizationError):
    code = 'last_organization'
    message_key = 'orgs.errors.last_organization'


class CannotDeleteCurrent(OrganizationError):
    code = 'cannot_delete_current'
    message_key = 'orgs.errors.cannot_delete_current'


class HasActiveMembers(OrganizationError):
    code = 'has_active_members'
    message_key = 'orgs.errors.has_active_members'


class AlreadyMember(OrganizationError):
    code = 'already_member'
    message_key = 'orgs.errors.already_member'


class ActiveInvitationExists(OrganizationError):
    code = 'active_invitation_exists'
    message_key = 'orgs.errors.active_invitation_exists'


class AlreadyResolved(OrganizationError):
    """Invitation was accepted or declined before; ``state`` says which."""

    code = 'already_resolved'
    message_key = 'orgs.errors.already_resolved'

    def __init__(self, state: str, message: Optional[str] = None):
        self.state = state
        super().__init__(message, meta={'state': state}, state=state)


class Expired(OrganizationError):
    code = 'expired'
    message_key = 'orgs.errors.expired'


class EmailMismatch(OrganizationError):
    code = 'email_mismatch'
    message_key = 'orgs.errors.email_mismatch'


class ValidationFailed(OrganizationError):
    """Field-level failures: ``errors`` maps a (dotted) field path to messages."""

    code = 'validation_failed'
    message_key = 'orgs.errors.validation_failed'

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        self.errors = {field: list(msgs) for field, msgs in errors.items()}
        super().__init__(message, meta={'fields': self.errors})


class NotFound(OrganizationError):
    code = 'not_found'
    message_key = 'orgs.errors.not_found'

    def __init__(self, resource: str = 'Organization', message: Optional[str] = None):
        self.resource = resource
        super().__init__(message, resource=resource)


class StorageUnavailable(OrganizationError):
    code = 'storage_unavailable'
    message_key = 'orgs.errors.storage_unavailable'
    retryable = True


class SlugCollision(OrganizationError):
    code = 'slug_collision'
    message_key = 'orgs.errors.slug_collision'


@contextmanager
def storage_errors(operation: str):
    """Surface database connectivity/timeouts as ``StorageUnavailable``."""
    try:
        yield
    except OperationalError as exc:
        logger.exception('org.storage_unavailable op=%s', operation)
        raise StorageUnavailable() from exc


def translate_storage_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with storage_errors(func.__name__):
            return func(*args, **kwargs)

    return wrapper


__all__ = [
    'OrganizationError',
    'InvalidEmail',
    'Forbidden',
    'DuplicateDefaultOrganization',
    'LastOrganization',
    'CannotDeleteCurrent',
    'HasActiveMembers',
    'AlreadyMember',
    'ActiveInvitationExists',
    'AlreadyResolved',
    'Expired',
    'EmailMismatch',
    'ValidationFailed',
    'NotFound',
    'StorageUnavailable',
    'SlugCollision',
    'storage_errors',
    'translate_storage_errors',
]
