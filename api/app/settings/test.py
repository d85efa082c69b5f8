from . import base

for k, v in base.__dict__.items():
    if k.isupper():
        globals()[k] = v

# Test overrides (executed when DJANGO_ENV=test or manage.py test sets 'test' in argv)
DEBUG = True
CELERY_TASK_ALWAYS_EAGER = True  # ensure tasks run inline for assertions
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
STORAGES = dict(base.STORAGES, staticfiles={'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'})

# Tenant-scoped fixture model used by the scoping tests
INSTALLED_APPS = list(base.INSTALLED_APPS) + ['testapp']

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'orgs-tests',
    }
}

# Generous request budgets so unrelated tests never trip a throttle
REST_FRAMEWORK = dict(base.REST_FRAMEWORK)
REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'] = dict(
    base.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'],
    user='10000/min',
    anon='10000/min',
    login='10000/min',
    org_create='10000/1m',
    org_update='10000/1m',
    org_delete='10000/1m',
    org_switch='10000/1m',
)
