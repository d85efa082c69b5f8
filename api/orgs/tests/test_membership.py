from django.contrib.auth import get_user_model
from django.test import TestCase

from orgs import membership, signals
from orgs.errors import AlreadyMember, NotFound, ValidationFailed
from orgs.models import Organization, OrgUser, Role


class MembershipTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='x')
        self.alice = User.objects.create_user(username='alice', email='Alice@Example.com', password='x')
        self.bob = User.objects.create_user(username='bob', email='bob@example.com', password='x')
        self.org = Organization.objects.create(name='Acme', slug='acme-abc123', owner=self.owner)
        self.events = []

    def _listen(self, signal):
        def handler(sender, **kwargs):
            self.events.append((signal, kwargs))

        signal.connect(handler, weak=False)
        self.addCleanup(signal.disconnect, handler)

    def test_add_member_twice_fails_without_second_row(self):
        membership.add_member(self.org, self.alice)
        with self.assertRaises(AlreadyMember):
            membership.add_member(self.org, self.alice, role=Role.ADMINISTRATOR)
        self.assertEqual(OrgUser.objects.filter(org=self.org, user=self.alice).count(), 1)
        self.assertEqual(membership.role_of(self.org, self.alice), Role.MEMBER)

    def test_add_member_emits_after_commit(self):
        self._listen(signals.member_added)
        with self.captureOnCommitCallbacks(execute=True):
            membership.add_member(self.org, self.alice, role=Role.ADMINISTRATOR)
        self.assertEqual(len(self.events), 1)
        _, payload = self.events[0]
        self.assertEqual(payload['organization'], self.org)
        self.assertEqual(payload['user'], self.alice)
        self.assertEqual(payload['role'], Role.ADMINISTRATOR)

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            membership.add_member(self.org, self.alice, role='owner')
        self.assertIn('role', ctx.exception.errors)

    def test_same_role_update_emits_nothing(self):
        membership.add_member(self.org, self.alice)
        self._listen(signals.member_role_changed)
        with self.captureOnCommitCallbacks(execute=True):
            membership.update_role(self.org, self.alice, Role.MEMBER)
        self.assertEqual(self.events, [])

    def test_role_change_emits_once_with_old_and_new(self):
        membership.add_member(self.org, self.alice)
        self._listen(signals.member_role_changed)
        with self.captureOnCommitCallbacks(execute=True):
            membership.update_role(self.org, self.alice, Role.ADMINISTRATOR)
        self.assertEqual(len(self.events), 1)
        _, payload = self.events[0]
        self.assertEqual(payload['old_role'], Role.MEMBER)
        self.assertEqual(payload['new_role'], Role.ADMINISTRATOR)
        self.assertTrue(membership.is_active_administrator(self.org, self.alice))

    def test_update_role_missing_membership(self):
        with self.assertRaises(NotFound):
            membership.update_role(self.org, self.bob, Role.ADMINISTRATOR)

    def test_remove_member(self):
        membership.add_member(self.org, self.alice)
        self._listen(signals.member_removed)
        with self.captureOnCommitCallbacks(execute=True):
            membership.remove_member(self.org, self.alice)
        self.assertFalse(membership.has_member(self.org, self.alice))
        self.assertEqual(len(self.events), 1)
        with self.assertRaises(NotFound):
            membership.remove_member(self.org, self.alice)

    def test_suspended_member_is_not_active(self):
        membership.add_member(self.org, self.alice, is_active=False)
        self.assertTrue(membership.has_member(self.org, self.alice))
        self.assertFalse(membership.has_active_member(self.org, self.alice))
        membership.set_active(self.org, self.alice, True)
        self.assertTrue(membership.has_active_member(self.org, self.alice))
        with self.assertRaises(NotFound):
            membership.set_active(self.org, self.bob, True)

    def test_listings(self):
        membership.add_member(self.org, self.alice, role=Role.ADMINISTRATOR)
        membership.add_member(self.org, self.bob)
        self.assertEqual([m.user for m in membership.list_members(self.org)], [self.alice, self.bob])
        self.assertEqual(list(membership.list_by_role(self.org, Role.MEMBER)), [self.bob])
        self.assertEqual(membership.active_members_excluding_owner(self.org).count(), 2)
        self.assertTrue(membership.has_active_member_with_email(self.org, 'alice@example.com'))
        with self.assertRaises(ValidationFailed):
            membership.list_by_role(self.org, 'superuser')

    def test_visible_organizations_skip_suspended_memberships(self):
        other = Organization.objects.create(name='Other', slug='other-abc123', owner=self.alice)
        membership.add_member(self.org, self.alice)
        membership.set_active(self.org, self.alice, False)
        self.assertEqual(list(membership.visible_organizations(self.alice)), [other])
        self.assertEqual(membership.organizations_for(self.alice).count(), 2)

    def test_reactivate_member(self):
        membership.add_member(self.org, self.bob)
        with self.assertRaises(AlreadyMember):
            membership.reactivate_member(self.org, self.bob, role=Role.ADMINISTRATOR)
        membership.set_active(self.org, self.bob, False)
        row = membership.reactivate_member(self.org, self.bob, role=Role.ADMINISTRATOR)
        self.assertTrue(row.is_active)
        self.assertEqual(membership.role_of(self.org, self.bob), Role.ADMINISTRATOR)
        with self.assertRaises(NotFound):
            membership.reactivate_member(self.org, self.alice)

    def test_user_side_views(self):
        other = Organization.objects.create(name='Other', slug='other-abc123', owner=self.alice)
        membership.add_member(self.org, self.alice, role=Role.ADMINISTRATOR)
        self.assertEqual(
            set(membership.organizations_for(self.alice).values_list('pk', flat=True)), {self.org.pk, other.pk}
        )
        self.assertEqual(list(membership.owned_organizations(self.alice)), [other])
        self.assertEqual(list(membership.administrated_organizations(self.alice)), [self.org])
        self.assertTrue(membership.is_administrator_of(self.alice, self.org))
        self.assertTrue(membership.is_administrator_of(self.owner, self.org))
        self.assertTrue(membership.belongs_to_organization(self.alice, other))
        self.assertFalse(membership.is_member_of(self.bob, self.org))

    def test_find_user_by_email_is_case_insensitive(self):
        self.assertEqual(membership.find_user_by_email(' alice@example.COM '), self.alice)
        with self.assertRaises(NotFound):
            membership.find_user_by_email('ghost@example.com')
