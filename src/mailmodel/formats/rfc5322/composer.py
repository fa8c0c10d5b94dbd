"""
RFC 5322 address composer.

Renders addresses and mailbox lists back to header text, validating every
name and addr-spec against the grammar used by the parser so that the
output can always be parsed again.
"""

import io

from mailmodel.errors import AddressGrammarError
from mailmodel.formats.rfc5322.grammar import (
    is_address,
    is_atom,
    is_group_name,
    is_quotable_name,
    is_unquoted_name,
)
from mailmodel.types import Mailboxes

BAD_ADDRESS = "Bad address or group."


def format_address(name: str, address: str) -> str:
    """
    Format a display name and an addr-spec according to RFC 5322.

    Args:
        name: The display name (can be empty)
        address: The addr-spec (can be empty)

    Returns:
        The formatted mailbox, or an empty string when both are empty

    Raises:
        AddressGrammarError: If the name cannot be quoted, the address
            has characters outside of the addr-spec grammar, or a name
            without an address is not a single atom

    Examples:
        >>> format_address('', 'user@example.com')
        '<user@example.com>'
        >>> format_address('John Doe', 'john@example.com')
        'John Doe <john@example.com>'
        >>> format_address('Doe, John', 'john@example.com')
        '"Doe, John" <john@example.com>'
    """
    if not name and not address:
        return ""
    if not address:
        # a bare name is only read back when it is a single atom
        if not is_atom(name):
            raise AddressGrammarError(BAD_ADDRESS)
        return name

    if is_unquoted_name(name):
        display_name = name
    elif is_quotable_name(name):
        display_name = f'"{name}"'
    else:
        raise AddressGrammarError(BAD_ADDRESS)

    if not is_address(address):
        raise AddressGrammarError(BAD_ADDRESS)
    addr_spec = f"<{address}>"

    if not display_name:
        return addr_spec
    return f"{display_name} {addr_spec}"


def format_mailbox(mailboxes: Mailboxes) -> str:
    """
    Format addresses and groups of an address-list header.

    Addresses come first, comma separated, followed by the groups, each one
    terminated by a semicolon::

        John <john@example.com>, Friends: <alice@example.com>, <bob@example.com>;

    Empty addresses, and group members without an addr-spec, are rejected
    since they would not be read back.
    """
    for mail in mailboxes.addresses:
        if mail.is_empty():
            raise AddressGrammarError(BAD_ADDRESS)
    for group in mailboxes.groups:
        if any(not member.address for member in group.members):
            raise AddressGrammarError(BAD_ADDRESS)

    buffer = io.StringIO()
    buffer.write(
        ", ".join(format_address(a.name, a.address) for a in mailboxes.addresses)
    )

    if mailboxes.addresses and mailboxes.groups:
        buffer.write(", ")

    for index, group in enumerate(mailboxes.groups):
        if not group.name or not is_group_name(group.name):
            raise AddressGrammarError(BAD_ADDRESS)
        if index:
            buffer.write(" ")
        buffer.write(f"{group.name}: ")
        buffer.write(
            ", ".join(format_address(m.name, m.address) for m in group.members)
        )
        buffer.write(";")

    return buffer.getvalue()
