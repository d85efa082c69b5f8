from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver

from orgs.context import OrganizationContext


@receiver(user_logged_in, dispatch_uid='accounts.load_default_organization')
def load_default_organization(sender, request, user, **kwargs):
    if request is None or not hasattr(request, 'session'):
        return
    OrganizationContext(user, request.session).sync_from_default()


@receiver(user_logged_out, dispatch_uid='accounts.clear_organization_session')
def clear_organization_session(sender, request, user, **kwargs):
    if request is None or not hasattr(request, 'session'):
        return
    OrganizationContext(user, request.session).clear_session()
