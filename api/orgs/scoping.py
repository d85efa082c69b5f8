"""Tenant scoping for organization-owned records.

Models opt in by subclassing ``OrganizationScopedModel``. Reads and writes go
through a ``ScopedRepository`` bound to the organization id resolved for the
acting user; there is no ambient global. Cross-organization access is an
explicit, logged bypass on the repository and never changes the bound id.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from django.db import models

from .context import OrganizationContext

logger = logging.getLogger(__name__)


class OrganizationScopedQuerySet(models.QuerySet):
    def for_organization(self, org_id: Optional[int]):
        return self.filter(organization_id=org_id)

    def for_context(self, org_id: Optional[int]):
        # Unscoped context (no organization) leaves the query unfiltered.
        if org_id is None:
            return self
        return self.for_organization(org_id)


class OrganizationScopedModel(models.Model):
    organization = models.ForeignKey(
        'orgs.Organization',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='+',
    )

    objects = OrganizationScopedQuerySet.as_manager()

    class Meta:
        abstract = True


class ScopedRepository:
    """Query and create ``model`` rows scoped to one organization id."""

    def __init__(self, model, organization_id: Optional[int]):
        self.model = model
        self.organization_id = organization_id

    @classmethod
    def for_context(cls, model, context: Union[OrganizationContext, int, None]) -> 'ScopedRepository':
        if isinstance(context, OrganizationContext):
            return cls(model, context.current_organization_id())
        return cls(model, context)

    def _base(self) -> OrganizationScopedQuerySet:
        return self.model._default_manager.all()

    def query(self):
        return self._base().for_context(self.organization_id)

    def all(self):
        return self.query()

    def filter(self, *args, **kwargs):
        return self.query().filter(*args, **kwargs)

    def get(self, *args, **kwargs):
        return self.query().get(*args, **kwargs)

    def create(self, **fields):
        if 'organization' not in fields and 'organization_id' not in fields:
            fields['organization_id'] = self.organization_id
        return self.model._default_manager.create(**fields)

    # Bypasses

    def all_organizations(self):
        logger.debug('org.scope.bypass model=%s mode=all', self.model.__name__)
        return self._base()

    def for_organization(self, org_id: int):
        logger.debug('org.scope.bypass model=%s mode=org org_id=%s', self.model.__name__, org_id)
        return self._base().for_organization(org_id)
