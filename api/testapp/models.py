from django.db import models

from orgs.scoping import OrganizationScopedModel


class Project(OrganizationScopedModel):
    name = models.CharField(max_length=100)

    def __str__(self) -> str:  # pragma: no cover
        return self.name
