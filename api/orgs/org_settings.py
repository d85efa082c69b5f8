"""Organization settings document: defaults, deep merge, dotted paths, validation.

The document is a nested JSON object. Defaults come from
``settings.ORG_DEFAULT_SETTINGS``; per-leaf rules are expressed as a DRF
serializer tree so failures come back as a field map (``contact.email`` etc).
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from django.conf import settings
from rest_framework import serializers

from .errors import ValidationFailed


def get_default_settings() -> Dict[str, Any]:
    return copy.deepcopy(getattr(settings, 'ORG_DEFAULT_SETTINGS', {}) or {})


def deep_merge(base: Mapping[str, Any] | None, override: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return ``base`` recursively overlaid with ``override``.

    Keys present in ``override`` always win, including explicit ``None``.
    Nested mappings merge key by key; lists and scalars are replaced whole.
    Neither input is mutated.
    """
    result: Dict[str, Any] = copy.deepcopy(dict(base or {}))
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def apply_defaults(document: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Fill every missing leaf from the defaults, keeping all custom values."""
    return deep_merge(get_default_settings(), document or {})


def _split(path: str) -> List[str]:
    return [p for p in str(path).split('.') if p != '']


def get_path(document: Any, path: str, default: Any = None) -> Any:
    node = document
    for part in _split(path):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return default
    return node


def set_path(document: Optional[Dict[str, Any]], path: str, value: Any) -> Dict[str, Any]:
    """Set ``value`` at ``path``, creating (or replacing non-dict) intermediate nodes."""
    document = document if isinstance(document, dict) else {}
    parts = _split(path)
    if not parts:
        return document
    node = document
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
    return document


def has_path(document: Any, path: str) -> bool:
    # Matches "present and not null"; an explicit None counts as absent.
    return get_path(document, path, None) is not None


def remove_path(document: Optional[Dict[str, Any]], path: str) -> Dict[str, Any]:
    document = document if isinstance(document, dict) else {}
    parts = _split(path)
    if not parts:
        return document
    node: Any = document
    for part in parts[:-1]:
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return document
    if isinstance(node, dict):
        node.pop(parts[-1], None)
    return document


# Validation rules ----------------------------------------------------------


class ContactSettingsSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    phone = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    website = serializers.URLField(required=False, allow_null=True, allow_blank=True)


class AddressSettingsSerializer(serializers.Serializer):
    postal_code = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    country = serializers.CharField(required=False, allow_null=True, min_length=2, max_length=2)


class AppSettingsSerializer(serializers.Serializer):
    timezone = serializers.CharField(required=False, allow_null=True)
    locale = serializers.CharField(required=False, allow_null=True, min_length=2, max_length=2)
    currency = serializers.CharField(required=False, allow_null=True, min_length=3, max_length=3)


class UiSettingsSerializer(serializers.Serializer):
    theme = serializers.ChoiceField(choices=['light', 'dark', 'auto'], required=False, allow_null=True)
    items_per_page = serializers.IntegerField(required=False, allow_null=True, min_value=5, max_value=100)


class SecuritySettingsSerializer(serializers.Serializer):
    password_expires_days = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=365)
    session_timeout_minutes = serializers.IntegerField(required=False, allow_null=True, min_value=5, max_value=1440)


class BillingSettingsSerializer(serializers.Serializer):
    plan = serializers.CharField(required=False, allow_null=True)
    billing_cycle = serializers.ChoiceField(choices=['monthly', 'yearly'], required=False, allow_null=True)


class OrganizationSettingsSerializer(serializers.Serializer):
    """Per-leaf rules for the settings document. Unknown keys pass through."""

    contact = ContactSettingsSerializer(required=False)
    address = AddressSettingsSerializer(required=False)
    app = AppSettingsSerializer(required=False)
    features = serializers.DictField(child=serializers.BooleanField(), required=False)
    ui = UiSettingsSerializer(required=False)
    security = SecuritySettingsSerializer(required=False)
    billing = BillingSettingsSerializer(required=False)


def flatten_errors(errors: Any, prefix: str, out: Dict[str, List[str]]) -> None:
    if isinstance(errors, Mapping):
        for key, value in errors.items():
            if key == 'non_field_errors':
                flatten_errors(value, prefix, out)
                continue
            flatten_errors(value, f'{prefix}.{key}' if prefix else str(key), out)
    elif isinstance(errors, list) and errors and all(isinstance(e, (Mapping, list)) for e in errors):
        for idx, value in enumerate(errors):
            flatten_errors(value, f'{prefix}.{idx}' if prefix else str(idx), out)
    else:
        msgs = errors if isinstance(errors, list) else [errors]
        out.setdefault(prefix or 'settings', []).extend(str(m) for m in msgs)


def validate(document: Any) -> None:
    """Raise ``ValidationFailed`` with dotted field paths if any rule fails."""
    if document is None:
        document = {}
    if not isinstance(document, Mapping):
        raise ValidationFailed({'settings': ['Settings must be an object.']})
    serializer = OrganizationSettingsSerializer(data=dict(document))
    if serializer.is_valid():
        return
    flat: Dict[str, List[str]] = {}
    flatten_errors(serializer.errors, '', flat)
    raise ValidationFailed(flat)
