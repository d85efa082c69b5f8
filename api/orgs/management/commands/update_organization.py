from django.core.management.base import BaseCommand, CommandError

from orgs import actions
from orgs.errors import OrganizationError

from ._lookup import organization_by_id_or_slug, user_by_email


class Command(BaseCommand):
    help = 'Update the name and/or description of an organization on behalf of a user'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('organization', help='Organization id or slug')
        parser.add_argument('--name', dest='name', default=None)
        parser.add_argument('--description', dest='description', default=None)

    def handle(self, *args, **options):
        user = user_by_email(options['email'])
        org = organization_by_id_or_slug(options['organization'])
        data = {k: options[k] for k in ('name', 'description') if options.get(k) is not None}
        if not data:
            raise CommandError('Nothing to update: pass --name and/or --description.')
        try:
            org = actions.update_organization(org, user, data)
        except OrganizationError as exc:
            raise CommandError(exc.message) from exc
        self.stdout.write(self.style.SUCCESS(f"Organization '{org.name}' ({org.slug}) updated."))
