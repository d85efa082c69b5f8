from unittest import mock

from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from orgs import actions, membership
from orgs.errors import (
    AlreadyResolved,
    NotFound,
    OrganizationError,
    StorageUnavailable,
    ValidationFailed,
    storage_errors,
    translate_storage_errors,
)
from orgs.models import Organization, OrgUser


class ErrorTypeTests(SimpleTestCase):
    def test_codes_messages_and_meta(self):
        err = ValidationFailed({'name': ['Too short.']})
        self.assertEqual(err.code, 'validation_failed')
        self.assertEqual(err.as_dict()['meta'], {'fields': {'name': ['Too short.']}})
        self.assertFalse(err.retryable)

        err = AlreadyResolved('declined')
        self.assertIn('declined', err.message)
        self.assertEqual(err.meta, {'state': 'declined'})

        self.assertEqual(NotFound('Invitation').message, 'Invitation not found.')
        self.assertTrue(StorageUnavailable().retryable)
        self.assertIsInstance(StorageUnavailable(), OrganizationError)

    def test_storage_errors_are_translated(self):
        @translate_storage_errors
        def flaky():
            raise OperationalError('server closed the connection unexpectedly')

        with self.assertLogs('orgs.errors', level='ERROR'):
            with self.assertRaises(StorageUnavailable):
                flaky()

        with self.assertRaises(ValueError):
            with storage_errors('other'):
                raise ValueError('not a storage problem')


class StorageUnavailableTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='x')
        self.user = User.objects.create_user(username='u', email='u@example.com', password='x')
        self.org = Organization.objects.create(name='Acme', slug='acme-abc123', owner=self.owner)

    def test_action_surfaces_storage_unavailable(self):
        with mock.patch.object(OrgUser.objects, 'create', side_effect=OperationalError('lock timeout')):
            with self.assertRaises(StorageUnavailable):
                membership.add_member(self.org, self.user)

    def test_delete_preflight_surfaces_storage_unavailable(self):
        with mock.patch.object(Organization.objects, 'filter', side_effect=OperationalError('statement timeout')):
            with self.assertRaises(StorageUnavailable):
                actions.can_delete(self.org, self.owner)

    def test_http_maps_to_503(self):
        client = APIClient()
        client.force_authenticate(self.owner)
        with mock.patch('orgs.views.membership.add_member', side_effect=StorageUnavailable()):
            res = client.post(f'/api/orgs/{self.org.id}/members/', {'user_id': self.user.id}, format='json')
        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.data['error']['code'], 'storage_unavailable')
