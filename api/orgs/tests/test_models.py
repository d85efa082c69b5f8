from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from orgs.errors import ValidationFailed
from orgs.models import Organization, OrgInvite, OrgUser, Role


class OrganizationModelTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='x')
        self.other = User.objects.create_user(username='other', email='other@example.com', password='x')
        self.org = Organization.objects.create(name='Acme', slug='acme-abc123', owner=self.owner)

    def test_defaults_applied_on_create(self):
        self.assertEqual(self.org.get_setting('app.timezone'), 'UTC')
        self.assertEqual(self.org.get_setting('ui.items_per_page'), 25)
        self.assertTrue(self.org.is_active())
        self.assertTrue(self.org.is_owned_by(self.owner))
        self.assertFalse(self.org.is_owned_by(self.other))
        self.assertFalse(self.org.is_owned_by(None))

    def test_partial_custom_settings_keep_custom_leaves(self):
        org = Organization.objects.create(
            name='Custom', slug='custom-abc123', owner=self.owner, settings={'app': {'timezone': 'America/New_York'}}
        )
        self.assertEqual(org.get_setting('app.timezone'), 'America/New_York')
        self.assertEqual(org.get_setting('app.locale'), 'en')

    def test_invalid_settings_rejected_on_save(self):
        self.org.set_setting('contact.email', 'not-an-email')
        with self.assertRaises(ValidationFailed) as ctx:
            self.org.save()
        self.assertIn('contact.email', ctx.exception.meta['fields'])

    def test_name_unique_among_active_only(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Organization.objects.create(name='Acme', slug='acme-zzz999', owner=self.other)
        self.org.soft_delete()
        again = Organization.objects.create(name='Acme', slug='acme-zzz999', owner=self.other)
        self.assertTrue(again.pk)

    def test_soft_delete_hides_from_default_manager(self):
        self.org.soft_delete()
        self.assertFalse(Organization.objects.filter(pk=self.org.pk).exists())
        self.assertTrue(Organization.all_objects.filter(pk=self.org.pk).exists())
        self.org.restore()
        self.assertTrue(Organization.objects.filter(pk=self.org.pk).exists())

    def test_role_listings_only_count_active_memberships(self):
        User = get_user_model()
        admin = User.objects.create_user(username='admin', email='admin@example.com', password='x')
        idle = User.objects.create_user(username='idle', email='idle@example.com', password='x')
        OrgUser.objects.create(org=self.org, user=admin, role=Role.ADMINISTRATOR)
        OrgUser.objects.create(org=self.org, user=self.other, role=Role.MEMBER)
        OrgUser.objects.create(org=self.org, user=idle, role=Role.ADMINISTRATOR, is_active=False)
        self.assertEqual(list(self.org.administrators()), [admin])
        self.assertEqual(list(self.org.members()), [self.other])
        self.assertEqual(self.org.users().count(), 3)
        self.assertEqual(self.org.active_users().count(), 2)

    def test_membership_unique_per_user(self):
        OrgUser.objects.create(org=self.org, user=self.other)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                OrgUser.objects.create(org=self.org, user=self.other, role=Role.ADMINISTRATOR)


class RoleTests(TestCase):
    def test_role_helpers(self):
        self.assertTrue(Role.ADMINISTRATOR.is_admin)
        self.assertFalse(Role.MEMBER.is_admin)
        self.assertTrue(Role.MEMBER.is_member)
        options = Role.options()
        self.assertEqual([o['value'] for o in options], ['member', 'administrator'])
        self.assertTrue(all(o['description'] for o in options))


class OrgInviteModelTests(TestCase):
    def setUp(self):
        owner = get_user_model().objects.create_user(username='owner', email='owner@example.com', password='x')
        self.org = Organization.objects.create(name='Acme', slug='acme-abc123', owner=owner)

    def test_token_expiry_and_email_defaults(self):
        inv = OrgInvite.objects.create(org=self.org, email='  Someone@Example.COM ')
        self.assertEqual(inv.email, 'someone@example.com')
        self.assertGreaterEqual(len(inv.token), 43)
        self.assertGreater(inv.expires_at, timezone.now() + timedelta(days=6))
        self.assertEqual(inv.state, 'pending')
        self.assertTrue(inv.is_valid())

    def test_expired_is_derived_from_pending_and_clock(self):
        inv = OrgInvite.objects.create(
            org=self.org, email='late@example.com', expires_at=timezone.now() - timedelta(minutes=1)
        )
        self.assertTrue(inv.is_pending())
        self.assertTrue(inv.is_expired())
        self.assertFalse(inv.is_valid())
        self.assertEqual(inv.state, 'expired')
        inv.declined_at = timezone.now()
        self.assertFalse(inv.is_expired())
        self.assertEqual(inv.state, 'declined')

    def test_one_pending_invite_per_email(self):
        OrgInvite.objects.create(org=self.org, email='dup@example.com')
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                OrgInvite.objects.create(org=self.org, email='dup@example.com')

    def test_tokens_are_unique(self):
        a = OrgInvite.objects.create(org=self.org, email='a@example.com')
        b = OrgInvite.objects.create(org=self.org, email='b@example.com')
        self.assertNotEqual(a.token, b.token)
