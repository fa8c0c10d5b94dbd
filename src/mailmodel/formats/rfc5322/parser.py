"""
RFC 5322 address-list parser (section 3.4).

The parser is a character-level state machine. Each state has a handler
that consumes one character and returns the next state; whether the input
may end in a given state is decided once, after the last character, by
``AddressListParser.TERMINAL_STATES``.

State diagram in graphviz dot language::

    digraph address_list {
        rankdir=LR;
        begin -> begin [label="space"];
        begin -> name_addr_group [label="atext"];
        begin -> quoted_name_begin [label="quote"];
        begin -> addr_bracket_begin [label="<"];
        name_addr_group -> name_addr_group [label="atext"];
        name_addr_group -> name [label="space"];
        name_addr_group -> addr [label="@"];
        name_addr_group -> group_begin [label=":"];
        name_addr_group -> begin [label=","];
        name -> name [label="atext, space"];
        name -> addr_bracket_begin [label="<"];
        addr -> addr [label="atext, @, space"];
        addr -> begin [label=","];
        addr -> group_end [label=";"];
        addr -> comment_begin [label="("];
        quoted_name_begin -> quoted_name_begin [label="qtext"];
        quoted_name_begin -> quoted_name_end [label="quote"];
        quoted_name_end -> quoted_name_end [label="space"];
        quoted_name_end -> addr_bracket_begin [label="<"];
        addr_bracket_begin -> addr_bracket_begin [label="atext, @"];
        addr_bracket_begin -> addr_bracket_end [label=">"];
        addr_bracket_end -> addr_bracket_end [label="space"];
        addr_bracket_end -> begin [label=","];
        addr_bracket_end -> group_end [label=";"];
        addr_bracket_end -> comment_begin [label="("];
        group_begin -> group_begin [label="space"];
        group_begin -> name_addr_group [label="atext"];
        group_begin -> quoted_name_begin [label="quote"];
        group_begin -> addr_bracket_begin [label="<"];
        group_begin -> group_end [label=";"];
        group_end -> group_end [label="space"];
        group_end -> begin [label=","];
        group_end -> name_addr_group [label="atext"];
        group_end -> comment_begin [label="("];
        comment_begin -> comment_begin [label="atext, space"];
        comment_begin -> comment_end [label=")"];
        comment_end -> comment_end [label="space"];
        comment_end -> begin [label=","];
    }
"""

import enum
import logging
from typing import List, Optional

from mailmodel.errors import AddressGrammarError
from mailmodel.formats.rfc5322.grammar import is_atext, is_dtext, is_qtext, is_space
from mailmodel.types import Address, Group, Mailboxes

logger = logging.getLogger(__name__)

BAD_ADDRESS = "Bad address or group."


class State(enum.Enum):
    """States of the address-list state machine."""

    BEGIN = enum.auto()
    # unquoted token which is a name, an address or a group name
    NAME_ADDR_GROUP = enum.auto()
    QUOTED_NAME_BEGIN = enum.auto()
    QUOTED_NAME_END = enum.auto()
    # address without angle brackets
    ADDR = enum.auto()
    # unquoted name with whitespace, must be followed by a bracketed address
    NAME = enum.auto()
    ADDR_BRACKET_BEGIN = enum.auto()
    ADDR_BRACKET_END = enum.auto()
    GROUP_BEGIN = enum.auto()
    GROUP_END = enum.auto()
    COMMENT_BEGIN = enum.auto()
    COMMENT_END = enum.auto()


class AddressListParser:
    """
    Parse one address-list header value into ``Mailboxes``.

    A parser instance holds the state of a single run; use
    ``parse_address_list`` instead of instantiating it directly.
    """

    TERMINAL_STATES = frozenset(
        {
            State.BEGIN,
            State.NAME_ADDR_GROUP,
            State.ADDR,
            State.ADDR_BRACKET_END,
            State.GROUP_END,
            State.COMMENT_END,
        }
    )

    def __init__(self):
        self.addresses: List[Address] = []
        self.groups: List[Group] = []
        # addresses or group members found since the last flush
        self.pending: List[Address] = []
        self.current = Address()
        self.group: Optional[Group] = None
        self.token = ""
        self.monkey_found = False
        # whitespace terminated an unbracketed address
        self.address_closed = False
        self.escaped = False
        self.handlers = {
            State.BEGIN: self._begin,
            State.NAME_ADDR_GROUP: self._name_addr_group,
            State.NAME: self._name,
            State.ADDR: self._addr,
            State.QUOTED_NAME_BEGIN: self._quoted_name_begin,
            State.QUOTED_NAME_END: self._quoted_name_end,
            State.ADDR_BRACKET_BEGIN: self._addr_bracket_begin,
            State.ADDR_BRACKET_END: self._addr_bracket_end,
            State.GROUP_BEGIN: self._group_begin,
            State.GROUP_END: self._group_end,
            State.COMMENT_BEGIN: self._comment_begin,
            State.COMMENT_END: self._comment_end,
        }

    def parse(self, text: str) -> Mailboxes:
        state = State.BEGIN
        for ch in text:
            state = self.handlers[state](ch)
        self._finish(state)
        return Mailboxes(self.addresses, self.groups)

    # Helpers

    @staticmethod
    def _fail(ch: Optional[str] = None):
        if ch is None:
            raise AddressGrammarError(BAD_ADDRESS)
        raise AddressGrammarError(f"{BAD_ADDRESS} Unexpected character {ch!r}.")

    def _reset_current(self):
        self.current = Address()
        self.token = ""
        self.monkey_found = False
        self.address_closed = False

    def _push_name(self):
        """Push the token as a name-only address."""
        self.current.name = self.token.strip()
        self.pending.append(self.current)
        self._reset_current()

    def _push_address(self):
        """Push the token as an addr-spec; it must contain the "@" sign."""
        if not self.monkey_found:
            self._fail()
        self.current.address = self.token
        self.pending.append(self.current)
        self._reset_current()

    def _flush_pending(self):
        """Move the pending addresses to the result, outside of any group."""
        self.addresses.extend(self.pending)
        self.pending = []

    def _open_group(self):
        if self.group is not None:
            # nested groups are not allowed
            self._fail(":")
        self._flush_pending()
        self.group = Group(name=self.token.strip())
        self._reset_current()

    def _close_group(self):
        if self.group is None:
            self._fail(";")
        self.group.members.extend(self.pending)
        self.pending = []
        self.groups.append(self.group)
        self.group = None

    def _start_comment(self):
        if self.group is not None:
            self._fail("(")
        self._flush_pending()
        return State.COMMENT_BEGIN

    def _finish(self, state: State):
        """Validate the end of input and flush what is left."""
        if state not in self.TERMINAL_STATES or self.group is not None:
            self._fail()
        if state == State.NAME_ADDR_GROUP:
            self._push_name()
        elif state == State.ADDR:
            self._push_address()
        self._flush_pending()

    # State handlers

    def _begin(self, ch: str) -> State:
        if is_space(ch):
            return State.BEGIN
        if is_atext(ch):
            self.token += ch
            return State.NAME_ADDR_GROUP
        if ch == '"':
            return State.QUOTED_NAME_BEGIN
        if ch == "<":
            return State.ADDR_BRACKET_BEGIN
        return self._fail(ch)

    def _name_addr_group(self, ch: str) -> State:
        if is_atext(ch):
            self.token += ch
            return State.NAME_ADDR_GROUP
        if ch == "@":
            self.token += ch
            self.monkey_found = True
            return State.ADDR
        if is_space(ch):
            self.token += ch
            return State.NAME
        if ch == ",":
            self._push_name()
            return State.BEGIN
        if ch == ":":
            self._open_group()
            return State.GROUP_BEGIN
        return self._fail(ch)

    def _name(self, ch: str) -> State:
        if is_atext(ch) or is_space(ch):
            self.token += ch
            return State.NAME
        if ch == "<":
            self.current.name = self.token.strip()
            self.token = ""
            return State.ADDR_BRACKET_BEGIN
        return self._fail(ch)

    def _addr(self, ch: str) -> State:
        if is_atext(ch) or ch == "@":
            if self.address_closed:
                self._fail(ch)
            self.token += ch
            if ch == "@":
                self.monkey_found = True
            return State.ADDR
        if is_space(ch):
            self.address_closed = True
            return State.ADDR
        if ch == ",":
            self._push_address()
            return State.BEGIN
        if ch == ";":
            if self.group is None:
                self._fail(ch)
            self._push_address()
            self._close_group()
            return State.GROUP_END
        if ch == "(":
            if self.group is not None:
                self._fail(ch)
            self._push_address()
            return self._start_comment()
        return self._fail(ch)

    def _quoted_name_begin(self, ch: str) -> State:
        if self.escaped:
            self.token += ch
            self.escaped = False
            return State.QUOTED_NAME_BEGIN
        if ch == "\\":
            # backslash only quotes the next character, see RFC 5322 3.2.4
            self.escaped = True
            return State.QUOTED_NAME_BEGIN
        if ch == '"':
            self.current.name = self.token
            self.token = ""
            return State.QUOTED_NAME_END
        if is_qtext(ch):
            self.token += ch
            return State.QUOTED_NAME_BEGIN
        return self._fail(ch)

    def _quoted_name_end(self, ch: str) -> State:
        if is_space(ch):
            return State.QUOTED_NAME_END
        if ch == "<":
            return State.ADDR_BRACKET_BEGIN
        return self._fail(ch)

    def _addr_bracket_begin(self, ch: str) -> State:
        if is_dtext(ch):
            self.token += ch
            if ch == "@":
                self.monkey_found = True
            return State.ADDR_BRACKET_BEGIN
        if ch == ">":
            self._push_address()
            return State.ADDR_BRACKET_END
        return self._fail(ch)

    def _addr_bracket_end(self, ch: str) -> State:
        if is_space(ch):
            return State.ADDR_BRACKET_END
        if ch == ",":
            return State.BEGIN
        if ch == ";":
            self._close_group()
            return State.GROUP_END
        if ch == "(":
            return self._start_comment()
        return self._fail(ch)

    def _group_begin(self, ch: str) -> State:
        if is_space(ch):
            return State.GROUP_BEGIN
        if is_atext(ch):
            self.token += ch
            return State.NAME_ADDR_GROUP
        if ch == '"':
            return State.QUOTED_NAME_BEGIN
        if ch == "<":
            return State.ADDR_BRACKET_BEGIN
        if ch == ";":
            self._close_group()
            return State.GROUP_END
        return self._fail(ch)

    def _group_end(self, ch: str) -> State:
        if is_space(ch):
            return State.GROUP_END
        if ch == ",":
            return State.BEGIN
        if is_atext(ch):
            self.token += ch
            return State.NAME_ADDR_GROUP
        if ch == "(":
            return self._start_comment()
        return self._fail(ch)

    def _comment_begin(self, ch: str) -> State:
        if is_atext(ch) or is_space(ch):
            return State.COMMENT_BEGIN
        if ch == ")":
            return State.COMMENT_END
        return self._fail(ch)

    def _comment_end(self, ch: str) -> State:
        if is_space(ch):
            return State.COMMENT_END
        if ch == ",":
            return State.BEGIN
        return self._fail(ch)


def parse_address_list(address_list: str) -> Mailboxes:
    """
    Parse the value of an address-list header (From, To, Cc, Bcc, Reply-To).

    Args:
        address_list: Unfolded header value

    Returns:
        Mailboxes holding the addresses and groups in order of appearance

    Raises:
        AddressGrammarError: If the value does not follow the grammar

    Examples:
        >>> mailboxes = parse_address_list("Jo <jo@mailio.dev>, jane@mailio.dev")
        >>> [address.address for address in mailboxes.addresses]
        ['jo@mailio.dev', 'jane@mailio.dev']
    """
    mailboxes = AddressListParser().parse(address_list)
    logger.debug(
        "Parsed %d addresses and %d groups",
        len(mailboxes.addresses),
        len(mailboxes.groups),
    )
    return mailboxes
