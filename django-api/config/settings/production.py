"""
Production settings.

These settings are suitable for the production environment.
"""

from decouple import config

from .base import *  # noqa

DEBUG = False
SECRET_KEY = config("SECRET_KEY")
TICKETS_PUBLIC_BASE_URL = config("TICKETS_PUBLIC_BASE_URL")

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_SECONDS = 31536000
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", default=True, cast=bool)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

DATABASES["default"]["CONN_MAX_AGE"] = config("DB_CONN_MAX_AGE", default=60, cast=int)  # noqa: F405
