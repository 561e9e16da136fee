"""
Réglages Django du projet woning.

Les valeurs propres à chaque déploiement viennent des variables d'environnement
WONING_*.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('WONING_SECRET_KEY', 'django-insecure-woning-dev-key')

DEBUG = _env_bool('WONING_DEBUG', True)

ALLOWED_HOSTS = [h.strip() for h in os.environ.get('WONING_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]


INSTALLED_APPS = [
    'jazzmin',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'core',
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

ROOT_URLCONF = 'woning.urls'

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

WSGI_APPLICATION = 'woning.wsgi.application'


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('WONING_DB_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


LANGUAGE_CODE = 'fr-fr'

TIME_ZONE = 'Africa/Abidjan'

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# API REST
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.BasicAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'COERCE_DECIMAL_TO_STRING': True,
}


# Interface d'administration
JAZZMIN_SETTINGS = {
    'site_title': "Woning.cloud",
    'site_header': "Woning.cloud",
    'site_brand': "Woning.cloud",
    'welcome_sign': "Gestion des loyers et reversements",
    'show_sidebar': True,
    'navigation_expanded': True,
    'order_with_respect_to': [
        'core.proprietaire', 'core.bien', 'core.maison', 'core.locataire',
        'core.paiement', 'core.archivereversement', 'core.archivemensuelle',
    ],
    'icons': {
        'core.proprietaire': 'fas fa-user-tie',
        'core.bien': 'fas fa-building',
        'core.maison': 'fas fa-home',
        'core.locataire': 'fas fa-users',
        'core.paiement': 'fas fa-money-bill-wave',
        'core.archivereversement': 'fas fa-hand-holding-usd',
        'core.archivemensuelle': 'fas fa-archive',
    },
}


# Journalisation
LOG_LEVEL = os.environ.get('WONING_LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} : {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'core': {
            'level': LOG_LEVEL,
        },
        'core.audit': {
            'level': 'INFO',
        },
    },
}


# Règles métier
WONING_TAUX_COMMISSION = int(os.environ.get('WONING_TAUX_COMMISSION', 10))
WONING_MOIS_GLISSANTS = int(os.environ.get('WONING_MOIS_GLISSANTS', 6))
WONING_DEVISE = os.environ.get('WONING_DEVISE', 'FCFA')
