"""
Content-Transfer-Encoding codecs (RFC 2045, section 6).

Every codec turns raw body bytes into a list of encoded lines (without line
terminators) and back.
"""

import base64
import binascii
from typing import List, Optional

from mailmodel.conf import get_setting
from mailmodel.enums import TransferEncodingChoices
from mailmodel.errors import CodecError

# RFC 5322, section 2.1.1
MAX_LINE_LENGTH = 998


class Codec:
    """Base class of the transfer codecs."""

    def __init__(self, line_length: Optional[int] = None, charset: str = ""):
        self.line_length = line_length or get_setting("MAILMODEL_LINE_LENGTH")
        self.charset = charset or get_setting("MAILMODEL_DEFAULT_CHARSET")

    def encode(self, data: bytes) -> List[str]:
        raise NotImplementedError

    def decode(self, lines: List[str]) -> bytes:
        raise NotImplementedError


class Base64Codec(Codec):
    """Base64 with lines wrapped at ``line_length`` characters."""

    def encode(self, data: bytes) -> List[str]:
        encoded = base64.b64encode(data).decode("ascii")
        return [
            encoded[i : i + self.line_length]
            for i in range(0, len(encoded), self.line_length)
        ]

    def decode(self, lines: List[str]) -> bytes:
        try:
            return base64.b64decode("".join(line.strip() for line in lines))
        except (binascii.Error, ValueError) as e:
            raise CodecError(f"Bad base64 content: {e}") from e


class QuotedPrintableCodec(Codec):
    """Quoted-printable; soft line breaks keep lines within 76 characters."""

    def encode(self, data: bytes) -> List[str]:
        lines = []
        for raw_line in data.splitlines():
            lines.extend(binascii.b2a_qp(raw_line).decode("ascii").split("\n"))
        return lines

    def decode(self, lines: List[str]) -> bytes:
        try:
            return binascii.a2b_qp("\r\n".join(lines).encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise CodecError(f"Bad quoted-printable content: {e}") from e


class Bit7Codec(Codec):
    """Plain US-ASCII lines of at most 998 characters."""

    encoding = "ascii"

    def encode(self, data: bytes) -> List[str]:
        try:
            text = data.decode(self.encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise CodecError(f"Content is not valid {self.encoding}: {e}") from e
        if "\0" in text:
            raise CodecError("Content contains a NUL character.")
        lines = text.splitlines()
        if any(len(line) > MAX_LINE_LENGTH for line in lines):
            raise CodecError("Line too long.")
        return lines

    def decode(self, lines: List[str]) -> bytes:
        try:
            return "\r\n".join(lines).encode(self.encoding)
        except (UnicodeEncodeError, LookupError) as e:
            raise CodecError(f"Content is not valid {self.encoding}: {e}") from e


class Bit8Codec(Bit7Codec):
    """Lines of the part charset, of at most 998 characters."""

    @property
    def encoding(self):
        return self.charset


CODECS = {
    TransferEncodingChoices.BIT7: Bit7Codec,
    TransferEncodingChoices.BIT8: Bit8Codec,
    TransferEncodingChoices.BASE64: Base64Codec,
    TransferEncodingChoices.QUOTED_PRINTABLE: QuotedPrintableCodec,
}


def get_codec(
    encoding: TransferEncodingChoices,
    charset: str = "",
    line_length: Optional[int] = None,
) -> Codec:
    """Return a codec instance for a Content-Transfer-Encoding value."""
    try:
        codec_class = CODECS[TransferEncodingChoices(encoding)]
    except (KeyError, ValueError) as e:
        raise CodecError(f"Unsupported transfer encoding: {encoding}") from e
    return codec_class(line_length=line_length, charset=charset)
