from django.conf import settings
from django.db import models


class Profile(models.Model):
    """Per-user durable state kept outside the auth user table.

    ``default_org_id`` is a plain integer rather than a foreign key: the referenced
    organization may be deleted later and readers must tolerate a dangling id.
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='org_profile')
    default_org_id = models.BigIntegerField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover
        return f"profile:{self.user_id}"
