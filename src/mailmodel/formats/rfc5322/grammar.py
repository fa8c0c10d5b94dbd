"""
Character classes of the RFC 5322 grammar (section 3.2.3 and 3.4.1).

Letters and digits are ASCII only; non-ASCII header text must be
RFC 2047 encoded before it reaches the address grammar.
"""

import re
import string

ATEXT = "!#$%&'*+-./=?^_`{|}~"
# atext with the "@" sign, used for the addr-spec inside angle brackets
DTEXT = "!#$%&'*+-.@/=?^_`{|}~"
# printable characters allowed in a quoted display name, except '"' and '\'
QTEXT = "!#$%&'()*+,-.@/:;<=>?[]^_`{|}~"

_ALNUM = frozenset(string.ascii_letters + string.digits)
_ATEXT = frozenset(ATEXT)
_DTEXT = frozenset(DTEXT)
_QTEXT = frozenset(QTEXT)

UNQUOTED_NAME_REGEX = re.compile(r"[A-Za-z0-9 \t]*")
QUOTED_NAME_REGEX = re.compile(
    r"[A-Za-z0-9 \t!#$%&'()*+,\-.@/:;<=>?\[\]^_`{|}~]*"
)
ADDRESS_REGEX = re.compile(r"[A-Za-z0-9!#$%&'*+\-.@/=?^_`{|}~]*")
GROUP_NAME_REGEX = re.compile(r"[A-Za-z0-9!#$%&'*+\-./=?^_`{|}~]*")
ATOM_REGEX = re.compile(r"[A-Za-z0-9!#$%&'*+\-./=?^_`{|}~]+")


def is_alnum(ch: str) -> bool:
    return ch in _ALNUM


def is_space(ch: str) -> bool:
    return ch in (" ", "\t", "\r", "\n")


def is_atext(ch: str) -> bool:
    """Letters, digits and the atext specials."""
    return is_alnum(ch) or ch in _ATEXT


def is_dtext(ch: str) -> bool:
    return is_alnum(ch) or ch in _DTEXT


def is_qtext(ch: str) -> bool:
    """Characters that may appear unescaped in a quoted display name."""
    return is_alnum(ch) or ch in _QTEXT or ch in (" ", "\t")


def is_unquoted_name(text: str) -> bool:
    return UNQUOTED_NAME_REGEX.fullmatch(text) is not None


def is_quotable_name(text: str) -> bool:
    return QUOTED_NAME_REGEX.fullmatch(text) is not None


def is_address(text: str) -> bool:
    return ADDRESS_REGEX.fullmatch(text) is not None


def is_group_name(text: str) -> bool:
    return GROUP_NAME_REGEX.fullmatch(text) is not None


def is_atom(text: str) -> bool:
    """A non-empty run of atext: a name that reads back without an address."""
    return ATOM_REGEX.fullmatch(text) is not None
