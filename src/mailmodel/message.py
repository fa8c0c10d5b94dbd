"""
RFC 5322 message model.

``Message`` adds the message-level headers (From, Reply-To, To, Cc, Bcc,
Subject, Date, MIME-Version) and the attachment handling to a MIME entity.
"""

import datetime
import logging
from typing import BinaryIO, Optional, TextIO, Union

from django.utils import timezone

from mailmodel.conf import get_setting
from mailmodel.enums import (
    DispositionChoices,
    MediaTypeChoices,
    TransferEncodingChoices,
)
from mailmodel.errors import (
    AddressGrammarError,
    AttachmentIndexError,
    MessageStructureError,
)
from mailmodel.formats.rfc5322.composer import format_address, format_mailbox
from mailmodel.formats.rfc5322.dates import format_date, parse_date
from mailmodel.formats.rfc5322.parser import parse_address_list
from mailmodel.mime.entity import (
    CRLF,
    ContentType,
    MimeEntity,
    make_boundary,
    parse_header_name_value,
)
from mailmodel.mime.loader import decode_header_text
from mailmodel.types import Address, Group, Mailboxes

logger = logging.getLogger(__name__)

FROM_HEADER = "From"
REPLY_TO_HEADER = "Reply-To"
TO_HEADER = "To"
CC_HEADER = "Cc"
BCC_HEADER = "Bcc"
SUBJECT_HEADER = "Subject"
DATE_HEADER = "Date"
MIME_VERSION_HEADER = "MIME-Version"

MESSAGE_HEADERS = frozenset(
    header.lower()
    for header in (
        FROM_HEADER,
        REPLY_TO_HEADER,
        TO_HEADER,
        CC_HEADER,
        BCC_HEADER,
        SUBJECT_HEADER,
        DATE_HEADER,
        MIME_VERSION_HEADER,
    )
)


class Message(MimeEntity):
    """
    An email message: sender, recipients, subject, date and MIME body.

    A new message carries the current time and has no recipients or parts.
    Attachments are stored as child parts owned by the message.
    """

    def __init__(self):
        super().__init__()
        self.sender = Address()
        self.reply_address = Address()
        self.recipients = Mailboxes()
        self.cc_recipients = Mailboxes()
        self.bcc_recipients = Mailboxes()
        self.subject = ""
        self.mime_version = get_setting("MAILMODEL_MIME_VERSION")
        self._date_time: Optional[datetime.datetime] = None
        self.date_time = datetime.datetime.now(datetime.timezone.utc)

    @property
    def date_time(self) -> Optional[datetime.datetime]:
        """Date of the message, None when not set."""
        return self._date_time

    @date_time.setter
    def date_time(self, value: Optional[datetime.datetime]):
        if value is not None:
            # sub-second precision is not representable in the Date header
            value = value.replace(microsecond=0)
            if timezone.is_naive(value):
                value = timezone.make_aware(value, datetime.timezone.utc)
        self._date_time = value

    # Recipients

    def add_recipient(self, mail: Union[Address, Group]):
        self._add_to(self.recipients, mail)

    def add_cc_recipient(self, mail: Union[Address, Group]):
        self._add_to(self.cc_recipients, mail)

    def add_bcc_recipient(self, mail: Union[Address, Group]):
        self._add_to(self.bcc_recipients, mail)

    @staticmethod
    def _add_to(mailboxes: Mailboxes, mail: Union[Address, Group]):
        if isinstance(mail, Group):
            mailboxes.groups.append(mail)
        else:
            mailboxes.addresses.append(mail)

    def sender_to_string(self) -> str:
        return format_address(self.sender.name, self.sender.address)

    def reply_address_to_string(self) -> str:
        return format_address(self.reply_address.name, self.reply_address.address)

    def recipients_to_string(self) -> str:
        return format_mailbox(self.recipients)

    def cc_recipients_to_string(self) -> str:
        return format_mailbox(self.cc_recipients)

    def bcc_recipients_to_string(self) -> str:
        return format_mailbox(self.bcc_recipients)

    # Attachments

    def attach(
        self,
        stream: Union[BinaryIO, TextIO],
        filename: str,
        media_type: MediaTypeChoices,
        subtype: str,
    ):
        """
        Attach the whole content of ``stream`` as a base64 encoded part.

        The first attachment turns the message into multipart/mixed. The
        stream is read completely and is not kept.
        """
        if not self.boundary:
            self.boundary = make_boundary()
            logger.debug("Generated boundary %s", self.boundary)
        self.content_type = ContentType(MediaTypeChoices.MULTIPART, "mixed")

        content = stream.read()
        part = self.make_part()
        part.content_type = ContentType(MediaTypeChoices(media_type), subtype)
        part.content_transfer_encoding = TransferEncodingChoices.BASE64
        part.content_disposition = DispositionChoices.ATTACHMENT
        part.name = filename
        part.content = content
        self.parts.append(part)
        logger.debug(
            "Attached %s (%s/%s, %d bytes)",
            filename,
            part.content_type.media_type.value,
            subtype,
            len(part.content),
        )

    def _attachment_parts(self):
        return [
            part
            for part in self.parts
            if part.content_disposition == DispositionChoices.ATTACHMENT
        ]

    def attachments_size(self) -> int:
        """Number of parts with an attachment disposition."""
        return len(self._attachment_parts())

    def attachment(self, index: int, stream: BinaryIO) -> str:
        """
        Write the content of an attachment into ``stream``.

        Args:
            index: 1-based index among the attachments, in attach order
            stream: Binary stream receiving the raw content

        Returns:
            The file name of the attachment

        Raises:
            AttachmentIndexError: If there is no attachment at ``index``;
                nothing is written in that case
        """
        attachments = self._attachment_parts()
        if index < 1 or index > len(attachments):
            raise AttachmentIndexError("No attachment at the given index.")
        part = attachments[index - 1]
        stream.write(part.content)
        return part.name

    # Header codec

    def format_header(self) -> str:
        """
        Render the message header block, ending with the empty line.

        Raises:
            MessageStructureError: If a boundary is set on a non multipart message,
                or the subject or MIME version holds a line break
            AddressGrammarError: If an address or group cannot be formatted
        """
        self.validate()
        for value in (self.subject, self.mime_version):
            if "\r" in value or "\n" in value:
                raise MessageStructureError("Header value with a line break.")
        lines = [f"{FROM_HEADER}: {self.sender_to_string()}{CRLF}"]
        if not self.reply_address.is_empty():
            lines.append(f"{REPLY_TO_HEADER}: {self.reply_address_to_string()}{CRLF}")
        lines.append(f"{TO_HEADER}: {self.recipients_to_string()}{CRLF}")
        if not self.cc_recipients.is_empty():
            lines.append(f"{CC_HEADER}: {self.cc_recipients_to_string()}{CRLF}")
        if not self.bcc_recipients.is_empty():
            lines.append(f"{BCC_HEADER}: {self.bcc_recipients_to_string()}{CRLF}")
        if self.date_time is not None:
            lines.append(f"{DATE_HEADER}: {format_date(self.date_time)}{CRLF}")
        if self.parts:
            lines.append(f"{MIME_VERSION_HEADER}: {self.mime_version}{CRLF}")
        lines.append(self.format_content_headers())
        lines.append(f"{SUBJECT_HEADER}: {self.subject}{CRLF}{CRLF}")
        return "".join(lines)

    def load(self, flanker_part):
        # a loaded message has a date only if it carries a Date header
        self.date_time = None
        for name, value in flanker_part.headers.items():
            if name.lower() in MESSAGE_HEADERS:
                self.parse_header_line(f"{name}: {decode_header_text(value)}")
        super().load(flanker_part)

    def parse_header_line(self, header_line: str):
        """
        Parse one unfolded header line into the message fields.

        Headers other than the message headers are handed to the MIME entity.

        Raises:
            AddressGrammarError: On a bad address list, or a From header
                without any address
            DateFormatError: On a bad Date header
        """
        name, value = parse_header_name_value(header_line)
        key = name.lower()
        if key not in MESSAGE_HEADERS:
            super().parse_header_line(header_line)
            return

        logger.debug("Parsing %s header", name)
        if key == FROM_HEADER.lower():
            mailboxes = parse_address_list(value)
            if not mailboxes.addresses:
                raise AddressGrammarError("Bad sender.")
            self.sender = mailboxes.addresses[0]
        elif key == REPLY_TO_HEADER.lower():
            mailboxes = parse_address_list(value)
            if mailboxes.addresses:
                self.reply_address = mailboxes.addresses[0]
        elif key == TO_HEADER.lower():
            self.recipients = parse_address_list(value)
        elif key == CC_HEADER.lower():
            self.cc_recipients = parse_address_list(value)
        elif key == BCC_HEADER.lower():
            self.bcc_recipients = parse_address_list(value)
        elif key == SUBJECT_HEADER.lower():
            self.subject = value
        elif key == DATE_HEADER.lower():
            self.date_time = parse_date(value)
        elif key == MIME_VERSION_HEADER.lower():
            self.mime_version = value
