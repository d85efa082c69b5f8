from django.core.management.base import BaseCommand, CommandError

from orgs import actions
from orgs.errors import OrganizationError

from ._lookup import user_by_email


class Command(BaseCommand):
    help = 'Create an organization for the user with the given email (the default one unless --name is given)'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('--name', dest='name', default=None, help='Name for an additional organization')
        parser.add_argument('--description', dest='description', default=None)

    def handle(self, *args, **options):
        user = user_by_email(options['email'])
        name = options.get('name')
        try:
            org = actions.create_organization(
                user,
                default=name is None,
                name=name,
                description=options.get('description'),
            )
        except OrganizationError as exc:
            raise CommandError(exc.message) from exc
        self.stdout.write(
            self.style.SUCCESS(f"Organization '{org.name}' ({org.slug}) created for {user.email}.")
        )
