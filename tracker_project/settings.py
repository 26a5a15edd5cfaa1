from pathlib import Path

from decouple import config, Csv
from kombu import Queue
import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Quick-start development settings - unsuitable for production
SECRET_KEY = config('SECRET_KEY', default='django-insecure-dev-only-change-me')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='', cast=Csv())

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Local
    'tracker',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'tracker_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
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

WSGI_APPLICATION = 'tracker_project.wsgi.application'

# Database
# Uses DATABASE_URL from .env
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default='sqlite:///db.sqlite3')
    )
}

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'timestamped': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'timestamped',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'apscheduler': {
            'level': 'WARNING',
        },
    },
}

# Email (notifications and sync reports)
EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=25, cast=int)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=False, cast=bool)
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='Student Progress Tracker <noreply@localhost>')
ADMIN_EMAIL = config('ADMIN_EMAIL', default='')

# Celery Configuration
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default='redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_DEFAULT_QUEUE = 'celery'
CELERY_TASK_QUEUES = (
    Queue('celery'),
    Queue('sync'),
)
# A single worker consumes "sync" so the remote rate limit stays process-wide.
CELERY_TASK_ROUTES = {
    'tracker.tasks.sync_student': {'queue': 'sync'},
    'tracker.tasks.sync_all_students': {'queue': 'sync'},
    'tracker.tasks.daily_sync': {'queue': 'sync'},
}

# Codeforces
CODEFORCES_API_URL = config('CODEFORCES_API_URL', default='https://codeforces.com/api')
CODEFORCES_MIN_INTERVAL_SECONDS = config('CODEFORCES_MIN_INTERVAL_SECONDS', default=0.2, cast=float)
CODEFORCES_TIMEOUT_SECONDS = config('CODEFORCES_TIMEOUT_SECONDS', default=10, cast=int)
CODEFORCES_SUBMISSIONS_TIMEOUT_SECONDS = config('CODEFORCES_SUBMISSIONS_TIMEOUT_SECONDS', default=15, cast=int)
CODEFORCES_SUBMISSIONS_PAGE_SIZE = config('CODEFORCES_SUBMISSIONS_PAGE_SIZE', default=100000, cast=int)
CODEFORCES_RECENT_CONTESTS_LIMIT = config('CODEFORCES_RECENT_CONTESTS_LIMIT', default=20, cast=int)

# Synchronization
SYNC_INSERT_BATCH_SIZE = config('SYNC_INSERT_BATCH_SIZE', default=1000, cast=int)
SYNC_STUDENT_DELAY_MULTIPLIER = config('SYNC_STUDENT_DELAY_MULTIPLIER', default=2, cast=int)
SYNC_STUDENT_LOCK_SECONDS = config('SYNC_STUDENT_LOCK_SECONDS', default=15 * 60, cast=int)

# Inactivity reminders
INACTIVITY_THRESHOLD_DAYS = config('INACTIVITY_THRESHOLD_DAYS', default=7, cast=int)
NOTIFICATION_DELAY_SECONDS = config('NOTIFICATION_DELAY_SECONDS', default=1.0, cast=float)

# Daily sync schedule
DAILY_SYNC_DEFAULT_CRON = config('DAILY_SYNC_DEFAULT_CRON', default='0 2 * * *')
DAILY_SYNC_TIMEZONE = config('DAILY_SYNC_TIMEZONE', default='Asia/Kolkata')
SCHEDULE_CONFIG_POLL_SECONDS = config('SCHEDULE_CONFIG_POLL_SECONDS', default=60, cast=int)
