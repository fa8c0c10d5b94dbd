"""
Import of raw RFC 5322 messages coming from the outside world.

The message goes through ``Message.parse``: Flanker takes care of the MIME
structure, transfer decoding and RFC 2047 encoded words, and the message
headers then go through the same grammar as every other message.
"""

import logging

from mailmodel.errors import MessageGrammarError, MessageStructureError
from mailmodel.message import Message

logger = logging.getLogger(__name__)


def parse_email_message(raw_email_bytes: bytes) -> Message:
    """
    Parse a raw email message (bytes) into a ``Message``.

    Args:
        raw_email_bytes: Raw email data as bytes

    Returns:
        The message with its headers, content and parts

    Raises:
        MessageStructureError: If the input is not bytes or Flanker cannot
            parse it
        MessageGrammarError: If one of the message headers breaks the grammar
    """
    if not raw_email_bytes or not isinstance(raw_email_bytes, bytes):
        logger.warning(
            "Invalid input provided to parse_email_message: type=%s",
            type(raw_email_bytes),
        )
        raise MessageStructureError("Input must be non-empty bytes.")

    try:
        return Message.parse(raw_email_bytes)
    except MessageGrammarError:
        raise
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.exception("Unexpected error during email import: %s", str(e))
        raise MessageStructureError(f"Failed to import email: {e}") from e
