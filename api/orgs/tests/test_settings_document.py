from django.test import SimpleTestCase, override_settings

from orgs import org_settings
from orgs.errors import ValidationFailed


class DeepMergeTests(SimpleTestCase):
    def test_custom_leaves_win_and_missing_leaves_fill(self):
        merged = org_settings.deep_merge(
            {'app': {'timezone': 'UTC', 'locale': 'en'}},
            {'app': {'timezone': 'America/New_York'}},
        )
        self.assertEqual(merged, {'app': {'timezone': 'America/New_York', 'locale': 'en'}})

    def test_explicit_none_overrides_and_lists_replace(self):
        base = {'contact': {'email': 'a@example.com'}, 'security': {'allowed_domains': ['a.com', 'b.com']}}
        merged = org_settings.deep_merge(base, {'contact': {'email': None}, 'security': {'allowed_domains': ['c.com']}})
        self.assertIsNone(merged['contact']['email'])
        self.assertEqual(merged['security']['allowed_domains'], ['c.com'])

    def test_inputs_not_mutated(self):
        base = {'a': {'b': 1}}
        override = {'a': {'c': 2}}
        merged = org_settings.deep_merge(base, override)
        merged['a']['b'] = 99
        self.assertEqual(base, {'a': {'b': 1}})
        self.assertEqual(override, {'a': {'c': 2}})

    @override_settings(ORG_DEFAULT_SETTINGS={'app': {'timezone': 'UTC', 'locale': 'en'}, 'ui': {'theme': 'light'}})
    def test_apply_defaults_uses_configured_document(self):
        doc = org_settings.apply_defaults({'app': {'timezone': 'Europe/Oslo'}})
        self.assertEqual(doc, {'app': {'timezone': 'Europe/Oslo', 'locale': 'en'}, 'ui': {'theme': 'light'}})
        # Defaults handed out are copies
        org_settings.get_default_settings()['app']['timezone'] = 'X'
        self.assertEqual(org_settings.get_default_settings()['app']['timezone'], 'UTC')


class DottedPathTests(SimpleTestCase):
    def test_get_set_has_remove(self):
        doc = {}
        org_settings.set_path(doc, 'contact.email', 'x@example.com')
        org_settings.set_path(doc, 'contact.phone', None)
        self.assertEqual(org_settings.get_path(doc, 'contact.email'), 'x@example.com')
        self.assertEqual(org_settings.get_path(doc, 'contact.fax', 'n/a'), 'n/a')
        self.assertTrue(org_settings.has_path(doc, 'contact.email'))
        self.assertFalse(org_settings.has_path(doc, 'contact.phone'))
        org_settings.remove_path(doc, 'contact.email')
        self.assertFalse(org_settings.has_path(doc, 'contact.email'))
        # Removing under a missing branch is a no-op
        org_settings.remove_path(doc, 'nope.deeper.key')
        self.assertEqual(doc, {'contact': {'phone': None}})

    def test_set_replaces_scalar_intermediate(self):
        doc = {'app': 'flat'}
        org_settings.set_path(doc, 'app.locale', 'fr')
        self.assertEqual(doc, {'app': {'locale': 'fr'}})


class ValidationTests(SimpleTestCase):
    def test_defaults_are_valid(self):
        org_settings.validate(org_settings.get_default_settings())

    def test_field_map_uses_dotted_paths(self):
        doc = org_settings.deep_merge(
            org_settings.get_default_settings(),
            {'contact': {'email': 'nope'}, 'ui': {'theme': 'neon', 'items_per_page': 500}},
        )
        with self.assertRaises(ValidationFailed) as ctx:
            org_settings.validate(doc)
        fields = ctx.exception.meta['fields']
        self.assertIn('contact.email', fields)
        self.assertIn('ui.theme', fields)
        self.assertIn('ui.items_per_page', fields)
        self.assertNotIn('app.timezone', fields)

    def test_unknown_keys_pass_through(self):
        org_settings.validate({'custom': {'anything': [1, 2, 3]}})

    def test_non_object_rejected(self):
        with self.assertRaises(ValidationFailed):
            org_settings.validate(['not', 'a', 'dict'])
