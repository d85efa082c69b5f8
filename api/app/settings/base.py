import os
import sys
from datetime import timedelta
from pathlib import Path
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
DEBUG = os.getenv('DEBUG', '0') == '1'

ALLOWED_HOSTS = [h for h in os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h]
if DEBUG:
    for h in ('testserver',):
        if h not in ALLOWED_HOSTS:
            ALLOWED_HOSTS.append(h)

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'app',
    'accounts',
    'orgs',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'accounts.middleware.OrganizationContextMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'app.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'app.wsgi.application'

DATABASES = {
    'default': dj_database_url.parse(os.getenv('DATABASE_URL', f'sqlite:///{BASE_DIR / "db.sqlite3"}'), conn_max_age=600)
}

TESTING = 'test' in sys.argv or 'pytest' in sys.modules
if TESTING:
    DEBUG = True
    if 'testserver' not in ALLOWED_HOSTS:
        ALLOWED_HOSTS.append('testserver')

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}
WHITENOISE_MAX_AGE = 31536000 if not DEBUG else 0

CORS_ALLOW_ALL_ORIGINS = True if os.getenv('CORS_ALLOW_ALL', '0') == '1' else False
CORS_ALLOWED_ORIGINS = [o for o in os.getenv('CORS_ALLOWED_ORIGINS', '').split(',') if o] if not CORS_ALLOW_ALL_ORIGINS else []
CORS_ALLOW_CREDENTIALS = os.getenv('CORS_ALLOW_CREDENTIALS', '0') == '1'
CSRF_TRUSTED_ORIGINS = [o for o in os.getenv('CSRF_TRUSTED_ORIGINS', '').split(',') if o]

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = os.getenv('SECURE_SSL_REDIRECT', '1' if not DEBUG else '0') == '1'
SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', '1' if not DEBUG else '0') == '1'
CSRF_COOKIE_SECURE = os.getenv('CSRF_COOKIE_SECURE', '1' if not DEBUG else '0') == '1'
SECURE_HSTS_SECONDS = int(os.getenv('SECURE_HSTS_SECONDS', '31536000' if not DEBUG else '0'))
SECURE_HSTS_INCLUDE_SUBDOMAINS = os.getenv('SECURE_HSTS_INCLUDE_SUBDOMAINS', '1' if not DEBUG else '0') == '1'
SECURE_HSTS_PRELOAD = os.getenv('SECURE_HSTS_PRELOAD', '1' if not DEBUG else '0') == '1'
SECURE_REFERRER_POLICY = os.getenv('SECURE_REFERRER_POLICY', 'strict-origin-when-cross-origin')

SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
CSRF_COOKIE_SAMESITE = os.getenv('CSRF_COOKIE_SAMESITE', 'Lax')

REST_FRAMEWORK = {
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.UserRateThrottle',
        'rest_framework.throttling.AnonRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'user': os.getenv('DRF_THROTTLE_USER', '100/min'),
        'anon': os.getenv('DRF_THROTTLE_ANON', '20/min'),
        'login': os.getenv('DRF_THROTTLE_LOGIN', '10/min'),
    },
    'EXCEPTION_HANDLER': 'app.errors.exception_handler',
    'DEFAULT_RENDERER_CLASSES': (
        ['rest_framework.renderers.JSONRenderer']
        if not DEBUG
        else [
            'rest_framework.renderers.JSONRenderer',
            'rest_framework.renderers.BrowsableAPIRenderer',
        ]
    ),
}

if not DEBUG:
    if SECRET_KEY == 'dev-secret-key':
        raise RuntimeError('SECURITY: SECRET_KEY must be set in production')
    if '*' in ALLOWED_HOSTS:
        raise RuntimeError('SECURITY: ALLOWED_HOSTS cannot include * in production')
    if CORS_ALLOW_ALL_ORIGINS:
        raise RuntimeError('SECURITY: CORS_ALLOW_ALL must be 0 in production')
    if not os.getenv('JWT_SIGNING_KEY'):
        raise RuntimeError('SECURITY: JWT_SIGNING_KEY must be set and distinct from SECRET_KEY in production')
    if os.getenv('JWT_SIGNING_KEY') == SECRET_KEY:
        raise RuntimeError('SECURITY: JWT_SIGNING_KEY must be different from SECRET_KEY for key rotation strategy')

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.getenv('JWT_ACCESS_MINUTES', '30'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(os.getenv('JWT_REFRESH_DAYS', '7'))),
    'SIGNING_KEY': os.getenv('JWT_SIGNING_KEY', SECRET_KEY),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

CELERY_BROKER_URL = os.getenv('REDIS_URL', '')
CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', '')
CELERY_TASK_ALWAYS_EAGER = os.getenv('CELERY_TASK_ALWAYS_EAGER', '0') == '1'

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'plain': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'plain'},
    },
    'root': {'handlers': ['console'], 'level': LOG_LEVEL},
    'loggers': {
        'orgs': {'level': os.getenv('ORG_LOG_LEVEL', LOG_LEVEL), 'propagate': True},
    },
}

# Organizations
ORG_SESSION_KEY = os.getenv('ORG_SESSION_KEY', 'organization_current_id')
ORG_INVITE_TTL_DAYS = int(os.getenv('ORG_INVITE_TTL_DAYS', '7'))
ORG_INVITES_ASYNC = os.getenv('ORG_INVITES_ASYNC', '0') == '1'
ORG_SLUG_SUFFIX_LENGTH = int(os.getenv('ORG_SLUG_SUFFIX_LENGTH', '6'))
ORG_SLUG_MAX_ATTEMPTS = int(os.getenv('ORG_SLUG_MAX_ATTEMPTS', '5'))

# Keyed by operation; each budget is max_attempts per decay_minutes, per user.
ORG_RATE_LIMITS = {
    'create_organization': {
        'max_attempts': int(os.getenv('ORG_RATE_CREATE_MAX', '5')),
        'decay_minutes': int(os.getenv('ORG_RATE_CREATE_DECAY', '60')),
    },
    'update_organization': {
        'max_attempts': int(os.getenv('ORG_RATE_UPDATE_MAX', '20')),
        'decay_minutes': int(os.getenv('ORG_RATE_UPDATE_DECAY', '60')),
    },
    'delete_organization': {
        'max_attempts': int(os.getenv('ORG_RATE_DELETE_MAX', '3')),
        'decay_minutes': int(os.getenv('ORG_RATE_DELETE_DECAY', '60')),
    },
    'switch_organization': {
        'max_attempts': int(os.getenv('ORG_RATE_SWITCH_MAX', '100')),
        'decay_minutes': int(os.getenv('ORG_RATE_SWITCH_DECAY', '60')),
    },
}

# Request-layer throttle scopes, one per rate-limited organization operation.
REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'].update({
    'org_create': '{max_attempts}/{decay_minutes}m'.format(**ORG_RATE_LIMITS['create_organization']),
    'org_update': '{max_attempts}/{decay_minutes}m'.format(**ORG_RATE_LIMITS['update_organization']),
    'org_delete': '{max_attempts}/{decay_minutes}m'.format(**ORG_RATE_LIMITS['delete_organization']),
    'org_switch': '{max_attempts}/{decay_minutes}m'.format(**ORG_RATE_LIMITS['switch_organization']),
})

ORG_DEFAULT_SETTINGS = {
    'contact': {
        'email': None,
        'phone': None,
        'fax': None,
        'website': None,
    },
    'address': {
        'street': None,
        'city': None,
        'state': None,
        'postal_code': None,
        'country': None,
    },
    'social_media': {
        'facebook': None,
        'twitter': None,
        'linkedin': None,
        'instagram': None,
        'youtube': None,
        'github': None,
    },
    'business': {
        'industry': None,
        'company_size': None,
        'founded_year': None,
        'tax_id': None,
        'registration_number': None,
    },
    'app': {
        'timezone': 'UTC',
        'locale': 'en',
        'currency': 'USD',
        'date_format': 'Y-m-d',
        'time_format': 'H:i:s',
    },
    'features': {
        'notifications': True,
        'analytics': True,
        'api_access': False,
        'custom_branding': False,
        'multi_language': False,
    },
    'ui': {
        'theme': 'light',  # light, dark, auto
        'sidebar_collapsed': False,
        'layout': 'default',
        'items_per_page': 25,
    },
    'security': {
        'two_factor_required': False,
        'password_expires_days': 90,
        'session_timeout_minutes': 120,
        'allowed_domains': [],
    },
    'billing': {
        'plan': 'free',
        'billing_cycle': 'monthly',  # monthly, yearly
        'auto_renew': True,
        'billing_email': None,
    },
    'integrations': {
        'email_provider': 'default',
        'storage_provider': 'local',
        'payment_gateway': None,
        'sms_provider': None,
    },
}

PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', '').strip()
FRONTEND_INVITE_URL_BASE = os.getenv('FRONTEND_INVITE_URL_BASE', '').strip() or (
    f'{PUBLIC_BASE_URL.rstrip("/")}/invite' if PUBLIC_BASE_URL else '/invite'
)

INVITE_SENDER_DOMAIN = os.getenv('INVITE_SENDER_DOMAIN', '').strip()
DEFAULT_FROM_EMAIL = (
    (f'invites@{INVITE_SENDER_DOMAIN}' if INVITE_SENDER_DOMAIN else None)
    or 'no-reply@localhost'
)
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.smtp.EmailBackend')
