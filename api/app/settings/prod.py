from . import base

for k, v in base.__dict__.items():
    if k.isupper():
        globals()[k] = v

# Production overrides
DEBUG = False
SESSION_ENGINE = 'django.contrib.sessions.backends.cached_db'
ORG_INVITES_ASYNC = base.ORG_INVITES_ASYNC or bool(base.CELERY_BROKER_URL)
