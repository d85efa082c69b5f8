import secrets
import uuid as uuid_lib
from datetime import timedelta
from typing import Any, Mapping

from django.conf import settings as dj_settings
from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Q
from django.utils import timezone

from app.common import keys

from . import org_settings


class Role(models.TextChoices):
    MEMBER = 'member', 'Member'
    ADMINISTRATOR = 'administrator', 'Administrator'

    @property
    def description(self) -> str:
        return keys.t(f'orgs.roles.{self.value}.description')

    @property
    def is_admin(self) -> bool:
        return self == Role.ADMINISTRATOR

    @property
    def is_member(self) -> bool:
        return self == Role.MEMBER

    @classmethod
    def options(cls):
        return [{'value': r.value, 'label': r.label, 'description': r.description} for r in cls]


class ActiveOrganizationManager(models.Manager):
    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class Organization(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(null=True, blank=True)
    owner = models.ForeignKey(dj_settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='owned_organizations')
    settings = models.JSONField(default=dict, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveOrganizationManager()
    all_objects = models.Manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['name'],
                condition=Q(deleted_at__isnull=True),
                name='orgs_organization_unique_active_name',
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.apply_default_settings()
        self.validate_settings()
        return super().save(*args, **kwargs)

    # Lifecycle helpers

    def is_active(self) -> bool:
        return self.deleted_at is None

    def is_owned_by(self, user) -> bool:
        return bool(user is not None and getattr(user, 'pk', None) == self.owner_id)

    def soft_delete(self) -> None:
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at', 'updated_at'])

    def restore(self) -> None:
        self.deleted_at = None
        self.save(update_fields=['deleted_at', 'updated_at'])

    # Member listings (users, not membership rows)

    def users(self):
        return get_user_model().objects.filter(org_memberships__org=self)

    def active_users(self):
        return get_user_model().objects.filter(org_memberships__org=self, org_memberships__is_active=True)

    def users_with_role(self, role: str):
        # Single filter() so all conditions apply to the same membership row
        return get_user_model().objects.filter(
            org_memberships__org=self,
            org_memberships__is_active=True,
            org_memberships__role=role,
        )

    def administrators(self):
        return self.users_with_role(Role.ADMINISTRATOR)

    def members(self):
        return self.users_with_role(Role.MEMBER)

    # Settings document

    def get_setting(self, path: str, default: Any = None) -> Any:
        return org_settings.get_path(self.settings, path, default)

    def set_setting(self, path: str, value: Any) -> None:
        self.settings = org_settings.set_path(self.settings, path, value)

    def has_setting(self, path: str) -> bool:
        return org_settings.has_path(self.settings, path)

    def remove_setting(self, path: str) -> None:
        self.settings = org_settings.remove_path(self.settings, path)

    def merge_settings(self, patch: Mapping[str, Any]) -> None:
        self.settings = org_settings.deep_merge(self.settings or {}, patch)

    def apply_default_settings(self) -> None:
        self.settings = org_settings.apply_defaults(self.settings)

    def reset_settings_to_defaults(self) -> None:
        self.settings = org_settings.get_default_settings()

    def validate_settings(self) -> None:
        org_settings.validate(self.settings)

    @staticmethod
    def get_default_settings():
        return org_settings.get_default_settings()


class OrgUser(models.Model):
    org = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(dj_settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='org_memberships')
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.MEMBER)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('org', 'user')

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id}@{self.org_id}:{self.role}"


class ActiveInviteManager(models.Manager):
    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class OrgInvite(models.Model):
    uuid = models.UUIDField(default=uuid_lib.uuid4, unique=True, editable=False)
    org = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='invites')
    invited_by = models.ForeignKey(
        dj_settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='sent_org_invites'
    )
    # Set once the invitation is accepted.
    user = models.ForeignKey(
        dj_settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='org_invitations'
    )
    email = models.EmailField()
    token = models.CharField(max_length=128, unique=True, editable=False)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.MEMBER)
    accepted_at = models.DateTimeField(null=True, blank=True)
    declined_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField()
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveInviteManager()
    all_objects = models.Manager()

    class Meta:
        indexes = [
            models.Index(fields=["org", "email"], name="orgs_invite_org_email_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['org', 'email'],
                condition=Q(accepted_at__isnull=True, declined_at__isnull=True, deleted_at__isnull=True),
                name='orgs_invite_unique_pending_email',
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.email}@{self.org_id}"

    @staticmethod
    def generate_token() -> str:
        # 32 random bytes -> 43 url-safe characters
        return secrets.token_urlsafe(32)

    @staticmethod
    def expiry_from_now(days=None):
        if days is None:
            days = int(getattr(dj_settings, 'ORG_INVITE_TTL_DAYS', 7) or 7)
        return timezone.now() + timedelta(days=days)

    def save(self, *args, **kwargs):
        if not self.token:
            self.token = self.generate_token()
        if self.expires_at is None:
            self.expires_at = self.expiry_from_now()
        if self.email:
            self.email = self.email.strip().lower()
        return super().save(*args, **kwargs)

    def is_accepted(self) -> bool:
        return self.accepted_at is not None

    def is_declined(self) -> bool:
        return self.declined_at is not None

    def is_pending(self) -> bool:
        return self.accepted_at is None and self.declined_at is None

    def is_expired(self) -> bool:
        return self.is_pending() and timezone.now() > self.expires_at

    def is_valid(self) -> bool:
        return self.is_pending() and not self.is_expired()

    @property
    def state(self) -> str:
        if self.is_accepted():
            return 'accepted'
        if self.is_declined():
            return 'declined'
        return 'expired' if self.is_expired() else 'pending'
