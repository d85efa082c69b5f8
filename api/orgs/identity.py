"""Identity capability the organization core relies on: {pk, email, display name}.

Works with whatever ``AUTH_USER_MODEL`` the host project configures.
"""

from typing import Optional


def email_of(user) -> str:
    return normalize_email(getattr(user, 'email', '') or '')


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


def display_name(user) -> str:
    full = ''
    get_full_name = getattr(user, 'get_full_name', None)
    if callable(get_full_name):
        full = (get_full_name() or '').strip()
    return full or getattr(user, 'username', '') or getattr(user, 'email', '') or 'User'


def first_name(user) -> str:
    name = display_name(user).split()
    return name[0] if name else 'User'
