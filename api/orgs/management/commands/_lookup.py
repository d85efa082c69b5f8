from django.contrib.auth import get_user_model
from django.core.management.base import CommandError

from orgs.models import Organization


def user_by_email(email):
    user = get_user_model().objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        raise CommandError(f'No user with email {email!r}.')
    return user


def organization_by_id_or_slug(identifier):
    identifier = str(identifier or '').strip()
    org = None
    if identifier.isdigit():
        org = Organization.objects.filter(pk=int(identifier)).first()
    if org is None:
        org = Organization.objects.filter(slug=identifier).first()
    if org is None:
        raise CommandError(f'No organization with id or slug {identifier!r}.')
    return org
