"""Fixtures for tests in the mailmodel package"""

import django
from django.conf import settings


def pytest_configure():
    """Configure a minimal Django project so that override_settings works."""
    if not settings.configured:
        settings.configure(
            USE_TZ=True,
            TIME_ZONE="UTC",
            INSTALLED_APPS=[],
        )
        django.setup()
