from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from accounts.models import Profile
from orgs.context import OrganizationContext, resolve_current_organization_id
from orgs.models import Organization


@override_settings(ORG_SESSION_KEY='organization_current_id')
class OrganizationContextTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username='u', email='u@example.com', password='x')
        self.org_a = Organization.objects.create(name='A', slug='a-abc123', owner=self.user)
        self.org_b = Organization.objects.create(name='B', slug='b-abc123', owner=self.user)
        self.session = {}

    def test_no_default_no_override_is_unscoped(self):
        self.assertIsNone(OrganizationContext(self.user, self.session).current_organization_id())
        self.assertIsNone(resolve_current_organization_id(self.user))

    def test_durable_default_used_without_override(self):
        OrganizationContext(self.user).set_default_organization(self.org_a.pk)
        self.assertEqual(resolve_current_organization_id(self.user), self.org_a.pk)
        self.assertEqual(OrganizationContext(self.user, {}).current_organization(), self.org_a)

    def test_override_wins_and_leaves_default_untouched(self):
        ctx = OrganizationContext(self.user, self.session)
        ctx.set_default_organization(self.org_a.pk)
        ctx.set_ephemeral_organization(self.org_b.pk)
        self.assertEqual(ctx.current_organization_id(), self.org_b.pk)
        self.assertEqual(Profile.objects.get(user=self.user).default_org_id, self.org_a.pk)
        # Another session for the same user still sees the default
        self.assertEqual(OrganizationContext(self.user, {}).current_organization_id(), self.org_a.pk)

    def test_dangling_default_resolves_to_none(self):
        Profile.objects.create(user=self.user, default_org_id=42424242)
        self.assertIsNone(resolve_current_organization_id(self.user))
        self.assertIsNone(OrganizationContext(self.user).default_organization_id())

    def test_soft_deleted_default_resolves_to_none(self):
        OrganizationContext(self.user).set_default_organization(self.org_a.pk)
        self.org_a.soft_delete()
        self.assertIsNone(resolve_current_organization_id(self.user))

    def test_stale_override_dropped_and_falls_through(self):
        ctx = OrganizationContext(self.user, self.session)
        ctx.set_default_organization(self.org_a.pk)
        ctx.set_ephemeral_organization(self.org_b.pk)
        self.org_b.delete()
        self.assertEqual(ctx.current_organization_id(), self.org_a.pk)
        self.assertNotIn('organization_current_id', self.session)

    def test_sync_and_clear_session(self):
        ctx = OrganizationContext(self.user, self.session)
        OrganizationContext(self.user).set_default_organization(self.org_b.pk)
        ctx.sync_from_default()
        self.assertEqual(self.session['organization_current_id'], self.org_b.pk)
        ctx.clear_session()
        self.assertEqual(self.session, {})

    def test_anonymous_context_is_unscoped(self):
        from django.contrib.auth.models import AnonymousUser

        ctx = OrganizationContext(AnonymousUser(), self.session)
        self.assertIsNone(ctx.current_organization_id())
        ctx.set_default_organization(self.org_a.pk)
        self.assertFalse(Profile.objects.exists())
