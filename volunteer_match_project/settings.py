# volunteer_match_project/settings.py

from pathlib import Path
import environ
import os
import sys

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Define ALL environment variables with their types and defaults here.
env = environ.Env(
    # set casting, default value
    DEBUG=(bool, True),
    SECRET_KEY=(str, 'django-insecure-a-default-secret-key-for-dev'),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1']),

    # DB
    DB_ENGINE=(str, 'django.db.backends.sqlite3'),
    DB_NAME=(str, 'volunteer_match_db'),
    DB_USER=(str, 'root'),
    DB_PASSWORD=(str, ''),
    DB_HOST=(str, 'localhost'),
    DB_PORT=(str, '3306'),
    DB_TIMEOUT=(int, 10),

    # Logging
    LOG_LEVEL=(str, 'INFO'),

    # Admission lock wait (seconds) before an accept is reported as a transient failure
    ENGAGEMENT_LOCK_TIMEOUT=(float, 5.0),

    # Run the test suite against DB_ENGINE instead of sqlite (row-lock tests need it)
    TEST_ON_SERVER_DB=(bool, False),
)
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env('SECRET_KEY')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env('DEBUG')

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')

# Application definition
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'engagement',
]

USE_TZ = True
TIME_ZONE = 'UTC'
LANGUAGE_CODE = 'en-us'
USE_I18N = True

# Database
# Check if running tests
RUNNING_TESTS = 'test' in sys.argv or 'pytest' in sys.modules

if (RUNNING_TESTS and not env('TEST_ON_SERVER_DB')) or env('DB_ENGINE') == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
            'OPTIONS': {
                'timeout': env('DB_TIMEOUT'),
            },
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': env('DB_ENGINE'),
            'NAME': env('DB_NAME'),
            'USER': env('DB_USER'),
            'PASSWORD': env('DB_PASSWORD'),
            'HOST': env('DB_HOST'),
            'PORT': env('DB_PORT'),
            'OPTIONS': {
                'connect_timeout': env('DB_TIMEOUT'),
                'read_timeout': env('DB_TIMEOUT'),
                'write_timeout': env('DB_TIMEOUT'),
            },
        }
    }

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Tell Django to use the custom User model from the 'engagement' app
AUTH_USER_MODEL = 'engagement.User'

ENGAGEMENT_LOCK_TIMEOUT = env('ENGAGEMENT_LOCK_TIMEOUT')

# Logging
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'engagement': {
            'handlers': ['console'],
            'level': env('LOG_LEVEL'),
            'propagate': False,
        },
    },
}
