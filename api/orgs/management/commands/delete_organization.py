from django.core.management.base import BaseCommand, CommandError

from orgs import actions
from orgs.errors import OrganizationError

from ._lookup import organization_by_id_or_slug, user_by_email


class Command(BaseCommand):
    help = 'Permanently delete an organization owned by the given user'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('organization', help='Organization id or slug')
        parser.add_argument(
            '--force',
            '--no-input',
            action='store_true',
            dest='force',
            help='Skip the confirmation prompt',
        )

    def handle(self, *args, **options):
        user = user_by_email(options['email'])
        org = organization_by_id_or_slug(options['organization'])

        check = actions.can_delete(org, user)
        if not check['can_delete']:
            raise CommandError(f"Cannot delete organization: {check['reason']}")

        if not options['force']:
            answer = input(f"Permanently delete organization '{org.name}'? [y/N] ")
            if answer.strip().lower() not in ('y', 'yes'):
                self.stdout.write('Deletion cancelled.')
                return

        try:
            result = actions.delete_organization(org, user)
        except OrganizationError as exc:
            raise CommandError(exc.message) from exc
        self.stdout.write(self.style.SUCCESS(result['message']))
