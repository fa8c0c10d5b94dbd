"""
MIME enums declaration
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MediaTypeChoices(models.TextChoices):
    """Top-level media types of a Content-Type header (RFC 2046)."""

    TEXT = "text", _("Text")
    IMAGE = "image", _("Image")
    AUDIO = "audio", _("Audio")
    VIDEO = "video", _("Video")
    APPLICATION = "application", _("Application")
    MULTIPART = "multipart", _("Multipart")
    MESSAGE = "message", _("Message")
    FONT = "font", _("Font")
    MODEL = "model", _("Model")


class TransferEncodingChoices(models.TextChoices):
    """Content-Transfer-Encoding values supported by the codecs."""

    BIT7 = "7bit", _("7bit")
    BIT8 = "8bit", _("8bit")
    BASE64 = "base64", _("Base64")
    QUOTED_PRINTABLE = "quoted-printable", _("Quoted-printable")


class DispositionChoices(models.TextChoices):
    """Content-Disposition values of a MIME part."""

    INLINE = "inline", _("Inline")
    ATTACHMENT = "attachment", _("Attachment")
