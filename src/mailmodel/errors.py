"""
Exceptions raised while parsing or formatting messages.
"""


class MessageGrammarError(Exception):
    """Base exception for every message parsing or formatting failure."""


class AddressGrammarError(MessageGrammarError):
    """Raised when an address, mailbox list or group breaks RFC 5322 grammar."""


class DateFormatError(MessageGrammarError):
    """Raised when a Date header value cannot be parsed."""


class MessageStructureError(MessageGrammarError):
    """Raised when the MIME structure of a message is inconsistent."""


class CodecError(MessageStructureError):
    """Raised when a body cannot be encoded or decoded with its transfer encoding."""


class AttachmentIndexError(MessageGrammarError, IndexError):
    """Raised when an attachment is requested at an index that does not exist."""
