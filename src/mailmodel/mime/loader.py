"""
Flanker front end of the MIME parser.

Flanker splits the header block, unfolds and decodes headers, walks the
multipart tree and undoes the transfer encodings; ``MimeEntity.parse``
then copies what it found into the mailmodel objects.
"""

import logging
from email.header import decode_header
from typing import Union

from flanker.mime import create
from flanker.mime.message import errors as mime_errors
from flanker.mime.message.headers.parsing import parse_header_value

from mailmodel.conf import get_setting
from mailmodel.errors import MessageStructureError

logger = logging.getLogger(__name__)

FALLBACK_CHARSET = "latin-1"


def _decode_word(chunk: Union[bytes, str], charset: str) -> str:
    if isinstance(chunk, str):
        return chunk
    if charset and charset != "unknown-8bit":
        try:
            return chunk.decode(charset, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %s in header", charset)
    try:
        return chunk.decode("utf-8")
    except UnicodeDecodeError:
        return chunk.decode(FALLBACK_CHARSET)


def decode_header_text(value) -> str:
    """
    Decode the RFC 2047 words of a header value and collapse its whitespace.

    Examples:
        >>> decode_header_text("=?utf-8?q?Caf=C3=A9?= au lait")
        'Café au lait'
    """
    if not value:
        return ""
    chunks = decode_header(str(value))
    text = "".join(_decode_word(chunk, charset or "") for chunk, charset in chunks)
    # split() also drops the CRLF of folded lines
    return " ".join(text.split())


def parse_content_header(name: str, value: str):
    """
    Parse the value of a Content-* header with Flanker.

    Returns a Flanker ``ContentType`` for Content-Type and a
    ``(value, params)`` pair for the other parametrized headers.
    """
    if not value or not value.strip():
        raise MessageStructureError(f"Empty {name} header.")
    try:
        return parse_header_value(name, value)
    except mime_errors.MimeError as e:
        raise MessageStructureError(f"Bad {name} header: {value}") from e


def read_message(raw: Union[bytes, str]):
    """
    Parse raw message text into a Flanker message tree.

    Raises:
        MessageStructureError: If Flanker cannot make a message of ``raw``
    """
    if isinstance(raw, str):
        raw = raw.encode(get_setting("MAILMODEL_DEFAULT_CHARSET"))
    try:
        flanker_message = create.from_string(raw)
    except mime_errors.MimeError as e:
        raise MessageStructureError(f"MIME parsing failed: {e}") from e

    if flanker_message is None or not hasattr(flanker_message, "headers"):
        raise MessageStructureError(
            "Flanker could not parse the input into a valid email message."
        )
    return flanker_message
