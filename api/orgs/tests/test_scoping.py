from django.contrib.auth import get_user_model
from django.test import TestCase

from orgs.context import OrganizationContext
from orgs.models import Organization
from orgs.scoping import ScopedRepository
from testapp.models import Project


class ScopedRepositoryTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username='u', email='u@example.com', password='x')
        self.org_a = Organization.objects.create(name='A', slug='a-abc123', owner=self.user)
        self.org_b = Organization.objects.create(name='B', slug='b-abc123', owner=self.user)
        Project.objects.create(name='alpha', organization=self.org_a)
        Project.objects.create(name='beta', organization=self.org_b)

    def test_reads_filtered_to_bound_organization(self):
        repo = ScopedRepository(Project, self.org_a.pk)
        self.assertEqual([p.name for p in repo.all()], ['alpha'])
        self.assertFalse(repo.filter(name='beta').exists())
        with self.assertRaises(Project.DoesNotExist):
            repo.get(name='beta')

    def test_create_fills_organization(self):
        repo = ScopedRepository(Project, self.org_b.pk)
        project = repo.create(name='gamma')
        self.assertEqual(project.organization_id, self.org_b.pk)
        # Explicit organization is respected
        other = repo.create(name='delta', organization=self.org_a)
        self.assertEqual(other.organization_id, self.org_a.pk)

    def test_unscoped_context_is_unfiltered(self):
        repo = ScopedRepository.for_context(Project, OrganizationContext(self.user, {}))
        self.assertIsNone(repo.organization_id)
        self.assertEqual(repo.all().count(), 2)
        self.assertIsNone(repo.create(name='loose').organization_id)

    def test_context_bound_to_current_organization(self):
        session = {}
        ctx = OrganizationContext(self.user, session)
        ctx.set_ephemeral_organization(self.org_b.pk)
        repo = ScopedRepository.for_context(Project, ctx)
        self.assertEqual([p.name for p in repo.all()], ['beta'])

    def test_bypasses_do_not_rebind(self):
        repo = ScopedRepository(Project, self.org_a.pk)
        self.assertEqual(repo.all_organizations().count(), 2)
        self.assertEqual([p.name for p in repo.for_organization(self.org_b.pk)], ['beta'])
        self.assertEqual(repo.organization_id, self.org_a.pk)
        self.assertEqual([p.name for p in repo.all()], ['alpha'])

    def test_queryset_helpers(self):
        self.assertEqual(Project.objects.for_organization(self.org_a.pk).count(), 1)
        self.assertEqual(Project.objects.for_context(None).count(), 2)
