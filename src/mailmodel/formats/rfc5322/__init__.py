"""
RFC5322 email format package.

This package provides the address-list grammar, the date-time codec and the
address composer used by the message headers. The Flanker based importer
lives in ``mailmodel.formats.rfc5322.importer``.
"""

from .composer import format_address, format_mailbox
from .dates import format_date, parse_date
from .parser import AddressListParser, parse_address_list

__all__ = [
    # Parser functions
    "parse_address_list",
    "AddressListParser",
    "parse_date",
    # Composer functions
    "format_address",
    "format_mailbox",
    "format_date",
]
