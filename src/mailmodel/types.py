"""
Value types for addresses found in recipient-style headers.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Address:
    """A single mailbox: an optional display name and an optional addr-spec."""

    name: str = ""
    address: str = ""

    def is_empty(self) -> bool:
        return not self.name and not self.address


@dataclass
class Group:
    """A named mail group, e.g. ``Friends: alice@example.com, bob@example.com;``"""

    name: str = ""
    members: List[Address] = field(default_factory=list)


@dataclass
class Mailboxes:
    """
    Parsed form of an address-list header.

    Addresses that belong to a group are only stored in that group's
    members, never in ``addresses``.
    """

    addresses: List[Address] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.addresses and not self.groups
