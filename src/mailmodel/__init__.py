"""
mailmodel: RFC 5322 / MIME message model.
"""

from mailmodel.errors import (
    AddressGrammarError,
    AttachmentIndexError,
    CodecError,
    DateFormatError,
    MessageGrammarError,
    MessageStructureError,
)
from mailmodel.message import Message
from mailmodel.types import Address, Group, Mailboxes

__all__ = [
    "Address",
    "Group",
    "Mailboxes",
    "Message",
    "MessageGrammarError",
    "AddressGrammarError",
    "DateFormatError",
    "MessageStructureError",
    "CodecError",
    "AttachmentIndexError",
]
