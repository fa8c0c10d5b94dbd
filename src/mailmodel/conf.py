"""
Settings of the mailmodel package.

Values are read from the Django settings when they are configured, so that
a project can override them like any other setting. Outside of a Django
project the defaults below apply.
"""

from django.conf import settings

DEFAULTS = {
    "MAILMODEL_MIME_VERSION": "1.0",
    # Maximum length of base64 and quoted-printable encoded lines
    "MAILMODEL_LINE_LENGTH": 76,
    "MAILMODEL_DEFAULT_CHARSET": "utf-8",
}


def get_setting(name: str):
    """Return the configured value of a mailmodel setting, or its default."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown mailmodel setting: {name}")
    if not settings.configured:
        return DEFAULTS[name]
    return getattr(settings, name, DEFAULTS[name])
