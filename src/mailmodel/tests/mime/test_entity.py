"""
Tests for the generic MIME entity.
"""

import io

import pytest
from django.test import override_settings

from mailmodel.enums import (
    DispositionChoices,
    MediaTypeChoices,
    TransferEncodingChoices,
)
from mailmodel.errors import CodecError, MessageStructureError
from mailmodel.mime.entity import (
    ContentType,
    MimeEntity,
    make_boundary,
    parse_header_name_value,
)


def make_multipart_entity():
    """Build a multipart/mixed entity with one text part."""
    entity = MimeEntity()
    entity.content_type = ContentType(MediaTypeChoices.MULTIPART, "mixed")
    entity.boundary = "b1"
    part = entity.make_part()
    part.content_type = ContentType(MediaTypeChoices.TEXT, "plain")
    part.content = "hello"
    entity.parts.append(part)
    return entity


class TestHeaderHelpers:
    """Tests for the header line helpers."""

    def test_parse_header_name_value(self):
        """The value is trimmed, colons after the first one are kept."""
        assert parse_header_name_value("Subject:  Re: hello ") == (
            "Subject",
            "Re: hello",
        )

    @pytest.mark.parametrize("line", ["no colon", ": value", "Bad Name: value"])
    def test_parse_bad_header_line(self, line):
        """Lines without a header name are rejected."""
        with pytest.raises(MessageStructureError):
            parse_header_name_value(line)

    def test_make_boundary(self):
        """Boundaries are unique and made of token characters."""
        first, second = make_boundary(), make_boundary()
        assert first != second
        assert first.replace("-", "").replace("_", "").isalnum()


class TestEntityFormatting:
    """Tests for MimeEntity formatting."""

    def test_content_headers(self):
        """Content-Type, transfer encoding and disposition are written."""
        entity = MimeEntity()
        entity.content_type = ContentType(MediaTypeChoices.TEXT, "plain", "utf-8")
        entity.content_transfer_encoding = TransferEncodingChoices.QUOTED_PRINTABLE
        entity.content_disposition = DispositionChoices.INLINE
        entity.name = "notes.txt"
        assert entity.format_content_headers() == (
            'Content-Type: text/plain; charset=utf-8; name="notes.txt"\r\n'
            "Content-Transfer-Encoding: quoted-printable\r\n"
            'Content-Disposition: inline; filename="notes.txt"\r\n'
        )

    def test_no_content_headers(self):
        """A default entity has no content headers."""
        assert MimeEntity().format_content_headers() == ""
        assert MimeEntity().format_header() == "\r\n"

    def test_format_simple_entity(self):
        """Headers, empty line and CRLF separated content."""
        entity = MimeEntity()
        entity.content_type = ContentType(MediaTypeChoices.TEXT, "plain")
        entity.content = "first\nsecond"
        assert entity.format() == (
            "Content-Type: text/plain\r\n\r\nfirst\r\nsecond"
        )

    def test_format_multipart_entity(self):
        """Parts are written between boundary delimiters."""
        assert make_multipart_entity().format() == (
            'Content-Type: multipart/mixed; boundary="b1"\r\n'
            "\r\n"
            "--b1\r\n"
            "Content-Type: text/plain\r\n"
            "\r\n"
            "hello\r\n"
            "--b1--\r\n"
        )

    def test_format_nested_multipart_entity(self):
        """Multipart parts are written recursively."""
        entity = make_multipart_entity()
        inner = make_multipart_entity()
        inner.boundary = "b2"
        entity.parts.append(inner)
        formatted = entity.format()
        assert formatted.count("--b1\r\n") == 2
        assert formatted.count("--b2\r\n") == 1
        assert formatted.index("--b2--\r\n") < formatted.index("--b1--\r\n")
        assert formatted.endswith("--b2--\r\n\r\n--b1--\r\n")

    def test_format_dot_escape(self):
        """Lines starting with a period are doubled on demand."""
        entity = MimeEntity()
        entity.content = ".hidden\r\nvisible\r\n.."
        assert entity.format_content() == ".hidden\r\nvisible\r\n.."
        assert entity.format_content(dot_escape=True) == (
            "..hidden\r\nvisible\r\n..."
        )

    def test_format_base64_content(self):
        """Binary content is base64 encoded."""
        entity = MimeEntity()
        entity.content_type = ContentType(MediaTypeChoices.IMAGE, "png")
        entity.content_transfer_encoding = TransferEncodingChoices.BASE64
        entity.content = b"\x89PNG\r\n"
        assert entity.format_content() == "iVBORw0K"

    @override_settings(MAILMODEL_DEFAULT_CHARSET="iso-8859-1")
    def test_text_content_default_charset(self):
        """Text content without charset uses the configured default charset."""
        entity = MimeEntity()
        entity.content = "café"
        assert entity.content == b"caf\xe9"

    def test_boundary_without_multipart(self):
        """A boundary requires a multipart content type."""
        entity = MimeEntity()
        entity.content_type = ContentType(MediaTypeChoices.TEXT, "plain")
        entity.boundary = "b1"
        buffer = io.StringIO()
        with pytest.raises(
            MessageStructureError, match="Non multipart message with boundary."
        ):
            entity.write(buffer)
        assert buffer.getvalue() == ""

    def test_parts_without_boundary(self):
        """Parts require a boundary."""
        entity = make_multipart_entity()
        entity.boundary = ""
        with pytest.raises(MessageStructureError):
            entity.format()

    def test_format_7bit_non_ascii(self):
        """Non-ASCII content cannot be sent as 7bit."""
        entity = MimeEntity()
        entity.content = "café"
        with pytest.raises(CodecError):
            entity.format()


class TestEntityParsing:
    """Tests for MimeEntity parsing."""

    def test_parse_simple_entity(self):
        """Content headers and decoded body."""
        entity = MimeEntity.parse(
            "Content-Type: text/plain; charset=utf-8\r\n"
            "Content-Transfer-Encoding: quoted-printable\r\n"
            "X-Mailer: test\r\n"
            "\r\n"
            "caf=C3=A9\r\n"
        )
        assert entity.content_type == ContentType(
            MediaTypeChoices.TEXT, "plain", "utf-8"
        )
        assert (
            entity.content_transfer_encoding
            == TransferEncodingChoices.QUOTED_PRINTABLE
        )
        assert entity.content.rstrip() == "café".encode()

    def test_parse_bytes(self):
        """Raw bytes are accepted as well as text."""
        entity = MimeEntity.parse(b"Content-Type: text/plain\r\n\r\nhello")
        assert str(entity.content_type) == "text/plain"
        assert entity.content.rstrip() == b"hello"

    def test_parse_folded_header(self):
        """Continuation lines are unfolded."""
        entity = MimeEntity.parse(
            "Content-Disposition: attachment;\r\n"
            '\tfilename="a.txt"\r\n'
            "\r\n"
            "abc"
        )
        assert entity.content_disposition == DispositionChoices.ATTACHMENT
        assert entity.name == "a.txt"
        assert entity.content.rstrip() == b"abc"

    def test_parse_header_case_insensitive(self):
        """Header names and values are case insensitive."""
        entity = MimeEntity.parse(
            "content-type: TEXT/HTML\r\ncontent-transfer-encoding: base64\r\n\r\nPGI+"
        )
        assert str(entity.content_type) == "text/html"
        assert entity.content_transfer_encoding == TransferEncodingChoices.BASE64
        assert entity.content == b"<b>"

    def test_parse_text_non_ascii(self):
        """Non-ASCII text sent as 8bit is kept as 8bit utf-8."""
        entity = MimeEntity.parse(
            "Content-Type: text/plain; charset=utf-8\r\n"
            "Content-Transfer-Encoding: 8bit\r\n"
            "\r\n".encode()
            + "café".encode()
        )
        assert entity.content_transfer_encoding == TransferEncodingChoices.BIT8
        assert entity.content.rstrip() == "café".encode()

    def test_parse_text_non_ascii_without_encoding(self):
        """Non-ASCII text declared as 7bit is loaded as quoted-printable."""
        entity = MimeEntity.parse(
            b"Content-Type: text/plain; charset=iso-8859-1\r\n\r\ncaf\xe9"
        )
        assert entity.content_type.charset == "utf-8"
        assert (
            entity.content_transfer_encoding
            == TransferEncodingChoices.QUOTED_PRINTABLE
        )
        assert entity.content.rstrip() == "café".encode()

    def test_parse_multipart(self):
        """Parts are parsed recursively, the preamble is dropped."""
        entity = MimeEntity.parse(
            'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
            "\r\n"
            "preamble\r\n"
            "--XYZ\r\n"
            "Content-Type: text/plain\r\n"
            "\r\n"
            "hello\r\n"
            "--XYZ\r\n"
            "Content-Type: application/octet-stream\r\n"
            "Content-Transfer-Encoding: base64\r\n"
            "\r\n"
            "AAEC\r\n"
            "--XYZ--\r\n"
            "epilogue\r\n"
        )
        assert entity.content_type.is_multipart()
        assert entity.boundary == "XYZ"
        assert entity.content == b""
        assert len(entity.parts) == 2
        assert entity.parts[0].content.rstrip() == b"hello"
        assert entity.parts[1].content == b"\x00\x01\x02"
        assert (
            entity.parts[1].content_transfer_encoding == TransferEncodingChoices.BASE64
        )

    def test_parse_unknown_media_type(self):
        """Unknown media types are loaded as application/octet-stream."""
        entity = MimeEntity.parse("Content-Type: chemical/x-pdb\r\n\r\nATOM")
        assert str(entity.content_type) == "application/octet-stream"
        assert entity.content_transfer_encoding == TransferEncodingChoices.BASE64
        assert entity.content.rstrip() == b"ATOM"

    def test_parse_unknown_disposition(self):
        """Unknown dispositions are dropped, the file name is kept."""
        entity = MimeEntity.parse(
            'Content-Disposition: form-data; filename="a.txt"\r\n\r\nabc'
        )
        assert entity.content_disposition is None
        assert entity.name == "a.txt"

    @pytest.mark.parametrize(
        "header",
        [
            "Content-Type: chemical/x-pdb",
            "Content-Type: ",
            "Content-Transfer-Encoding: x-uuencode",
            "Content-Disposition: form-data",
        ],
    )
    def test_parse_bad_content_header_line(self, header):
        """Unsupported content header values are rejected one line at a time."""
        with pytest.raises(MessageStructureError):
            MimeEntity().parse_header_line(header)

    def test_parse_content_header_line(self):
        """A single Content-Type line sets the type, charset and boundary."""
        entity = MimeEntity()
        entity.parse_header_line('Content-Type: Multipart/Mixed; boundary="b1"')
        assert entity.content_type == ContentType(MediaTypeChoices.MULTIPART, "mixed")
        assert entity.boundary == "b1"

    def test_formatted_entity_is_parsed_back(self):
        """Parsing a formatted entity gives back the same tree."""
        entity = make_multipart_entity()
        attachment = entity.make_part()
        attachment.content_type = ContentType(MediaTypeChoices.IMAGE, "png")
        attachment.content_transfer_encoding = TransferEncodingChoices.BASE64
        attachment.content_disposition = DispositionChoices.ATTACHMENT
        attachment.name = "pixel.png"
        attachment.content = bytes(range(256))
        entity.parts.append(attachment)

        parsed = MimeEntity.parse(entity.format())
        assert parsed.content_type == entity.content_type
        assert parsed.boundary == "b1"
        assert len(parsed.parts) == 2
        assert parsed.parts[0].content.rstrip() == b"hello"
        assert parsed.parts[1].content == bytes(range(256))
        assert parsed.parts[1].name == "pixel.png"
        assert parsed.parts[1].content_disposition == DispositionChoices.ATTACHMENT
