"""
Generic MIME entity (RFC 2045, RFC 2046).

A ``MimeEntity`` owns the content headers of a body part (type, transfer
encoding, disposition), its raw content and, for multipart entities, the
boundary and the list of child parts. ``mailmodel.message.Message`` builds
the RFC 5322 message headers on top of it.

Parsing goes through Flanker (see ``mailmodel.mime.loader``); formatting
is done here.
"""

import base64
import io
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from flanker.mime.message import errors as mime_errors

from mailmodel.conf import get_setting
from mailmodel.enums import (
    DispositionChoices,
    MediaTypeChoices,
    TransferEncodingChoices,
)
from mailmodel.errors import MessageStructureError
from mailmodel.mime.codecs import get_codec
from mailmodel.mime.loader import decode_header_text, parse_content_header, read_message

logger = logging.getLogger(__name__)

CRLF = "\r\n"
CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_TRANSFER_ENCODING_HEADER = "Content-Transfer-Encoding"
CONTENT_DISPOSITION_HEADER = "Content-Disposition"


@dataclass
class ContentType:
    """Value of a Content-Type header; ``media_type`` is None when not set."""

    media_type: Optional[MediaTypeChoices] = None
    subtype: str = ""
    charset: str = ""

    def is_multipart(self) -> bool:
        return self.media_type == MediaTypeChoices.MULTIPART

    def __str__(self):
        if self.media_type is None:
            return ""
        return f"{self.media_type.value}/{self.subtype}"


def make_boundary() -> str:
    """Generate a random multipart boundary."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes).rstrip(b"=").decode("ascii")


def parse_header_name_value(header_line: str) -> Tuple[str, str]:
    """
    Split an unfolded header line into its name and trimmed value.

    Raises:
        MessageStructureError: If the line has no colon or no name
    """
    name, separator, value = header_line.partition(":")
    name = name.strip()
    if not separator or not name or " " in name:
        raise MessageStructureError(f"Bad header line: {header_line!r}")
    return name, value.strip()


def quote_parameter(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class MimeEntity:
    """A MIME body part with its content headers and child parts."""

    def __init__(self):
        self.content_type = ContentType()
        self.content_transfer_encoding = TransferEncodingChoices.BIT7
        self.content_disposition: Optional[DispositionChoices] = None
        # file name of an attachment
        self.name = ""
        self.boundary = ""
        self.parts: List["MimeEntity"] = []
        self._content = b""

    @property
    def content(self) -> bytes:
        """Raw (decoded) body of the entity."""
        return self._content

    @content.setter
    def content(self, value: Union[bytes, str]):
        if isinstance(value, str):
            value = value.encode(
                self.content_type.charset or get_setting("MAILMODEL_DEFAULT_CHARSET")
            )
        self._content = value

    def is_empty(self) -> bool:
        return not self._content

    def make_part(self) -> "MimeEntity":
        """Create an empty child part."""
        return MimeEntity()

    def validate(self):
        """
        Check the structural invariants before formatting.

        Raises:
            MessageStructureError: If a boundary is set on a non multipart
                entity, or a multipart body has no boundary
        """
        if self.boundary and not self.content_type.is_multipart():
            raise MessageStructureError("Non multipart message with boundary.")
        if self.parts and not self.boundary:
            raise MessageStructureError("Multipart message without boundary.")

    # Formatting

    def format_content_headers(self) -> str:
        """Render the Content-* headers, each terminated by CRLF."""
        buffer = io.StringIO()
        if self.content_type.media_type is not None:
            buffer.write(f"{CONTENT_TYPE_HEADER}: {self.content_type}")
            if self.content_type.charset:
                buffer.write(f"; charset={self.content_type.charset}")
            if self.name:
                buffer.write(f"; name={quote_parameter(self.name)}")
            if self.boundary:
                buffer.write(f"; boundary={quote_parameter(self.boundary)}")
            buffer.write(CRLF)
        if self.content_transfer_encoding != TransferEncodingChoices.BIT7:
            buffer.write(
                f"{CONTENT_TRANSFER_ENCODING_HEADER}: "
                f"{self.content_transfer_encoding.value}{CRLF}"
            )
        if self.content_disposition is not None:
            buffer.write(
                f"{CONTENT_DISPOSITION_HEADER}: {self.content_disposition.value}"
            )
            if self.name:
                buffer.write(f"; filename={quote_parameter(self.name)}")
            buffer.write(CRLF)
        return buffer.getvalue()

    def format_header(self) -> str:
        """Render the header block, including the empty line ending it."""
        self.validate()
        return self.format_content_headers() + CRLF

    def format_content(self, dot_escape: bool = False) -> str:
        """
        Encode the content with the transfer encoding.

        Lines are joined by CRLF, without a trailing line break. With
        ``dot_escape``, lines starting with a period get a second one, as
        required by SMTP and POP3 framing.
        """
        codec = get_codec(self.content_transfer_encoding, self.content_type.charset)
        lines = codec.encode(self._content)
        if dot_escape:
            lines = ["." + line if line.startswith(".") else line for line in lines]
        return CRLF.join(lines)

    def write(self, buffer: io.StringIO, dot_escape: bool = False):
        """Write the entity and, recursively, its parts into ``buffer``."""
        buffer.write(self.format_header())
        content = self.format_content(dot_escape)
        buffer.write(content)
        if not self.parts:
            return

        if content:
            buffer.write(CRLF)
        for part in self.parts:
            buffer.write(f"--{self.boundary}{CRLF}")
            part.write(buffer, dot_escape)
            buffer.write(CRLF)
        buffer.write(f"--{self.boundary}--{CRLF}")

    def format(self, dot_escape: bool = False) -> str:
        """Render the whole entity to its wire format."""
        buffer = io.StringIO()
        self.write(buffer, dot_escape)
        return buffer.getvalue()

    # Parsing

    def parse_header_line(self, header_line: str):
        """Parse one unfolded header line; headers other than Content-* are ignored."""
        name, value = parse_header_name_value(header_line)
        key = name.lower()
        if key == CONTENT_TYPE_HEADER.lower():
            self._set_content_type(parse_content_header(CONTENT_TYPE_HEADER, value))
        elif key == CONTENT_TRANSFER_ENCODING_HEADER.lower():
            encoding, _ = parse_content_header(CONTENT_TRANSFER_ENCODING_HEADER, value)
            try:
                self.content_transfer_encoding = TransferEncodingChoices(
                    str(encoding or "").lower()
                )
            except ValueError as e:
                raise MessageStructureError(
                    f"Unsupported transfer encoding: {value}"
                ) from e
        elif key == CONTENT_DISPOSITION_HEADER.lower():
            disposition, params = parse_content_header(
                CONTENT_DISPOSITION_HEADER, value
            )
            self._set_content_disposition(disposition, params)
        else:
            logger.debug("Ignoring header %s", name)

    def _set_content_type(self, flanker_content_type, strict: bool = True):
        main = getattr(flanker_content_type, "main", None)
        if not main:
            raise MessageStructureError("Bad content type.")
        try:
            media_type = MediaTypeChoices(str(main).lower())
        except ValueError as e:
            if strict:
                raise MessageStructureError(f"Unknown media type: {main}") from e
            logger.warning(
                "Unknown media type %s, loading as application/octet-stream", main
            )
            self.content_type = ContentType(
                MediaTypeChoices.APPLICATION, "octet-stream"
            )
            return

        params = flanker_content_type.params or {}
        self.content_type = ContentType(
            media_type,
            str(flanker_content_type.sub).lower(),
            params.get("charset", ""),
        )
        if params.get("boundary"):
            self.boundary = params["boundary"]
        if params.get("name") and not self.name:
            self.name = decode_header_text(params["name"])

    def _set_content_disposition(self, disposition, params, strict: bool = True):
        try:
            self.content_disposition = DispositionChoices(str(disposition).lower())
        except ValueError as e:
            if strict:
                raise MessageStructureError(
                    f"Unknown content disposition: {disposition}"
                ) from e
            logger.debug("Ignoring content disposition %s", disposition)
        # the filename of the disposition wins over the content type name
        if params and params.get("filename"):
            self.name = decode_header_text(params["filename"])

    def load(self, flanker_part):
        """
        Copy the content headers, body and parts of a part parsed by Flanker.

        Unknown media types are loaded as application/octet-stream and unknown
        dispositions are dropped, so that any message Flanker accepts loads.
        """
        if CONTENT_TYPE_HEADER in flanker_part.headers:
            self._set_content_type(flanker_part.content_type, strict=False)
        disposition, params = flanker_part.content_disposition
        if disposition:
            self._set_content_disposition(disposition, params, strict=False)

        if flanker_part.content_type.is_multipart():
            for flanker_child in flanker_part.parts:
                child = self.make_part()
                child.load(flanker_child)
                self.parts.append(child)
            return

        body = flanker_part.body
        if body is None:
            return
        encoding = flanker_part.content_encoding
        if isinstance(encoding, tuple):
            encoding = encoding[0]
        try:
            self.content_transfer_encoding = TransferEncodingChoices(
                str(encoding or "").lower()
            )
        except ValueError:
            logger.debug("Ignoring transfer encoding %s", encoding)

        if isinstance(body, str):
            # text bodies are decoded by Flanker and stored back as utf-8
            self.content_type.charset = "utf-8"
            if (
                self.content_transfer_encoding == TransferEncodingChoices.BIT7
                and not body.isascii()
            ):
                self.content_transfer_encoding = (
                    TransferEncodingChoices.QUOTED_PRINTABLE
                )
        elif self.content_transfer_encoding not in (
            TransferEncodingChoices.BASE64,
            TransferEncodingChoices.QUOTED_PRINTABLE,
        ):
            self.content_transfer_encoding = TransferEncodingChoices.BASE64
        self.content = body

    @classmethod
    def parse(cls, raw: Union[bytes, str]) -> "MimeEntity":
        """
        Parse a whole entity: header block, body and, for multipart
        entities, every part recursively.

        A multipart preamble is not kept.

        Raises:
            MessageStructureError: If the text is not a MIME entity
        """
        flanker_message = read_message(raw)
        entity = cls()
        try:
            entity.load(flanker_message)
        except mime_errors.MimeError as e:
            raise MessageStructureError(f"MIME parsing failed: {e}") from e
        return entity
