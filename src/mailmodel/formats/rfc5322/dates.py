"""
RFC 5322 date-time codec (section 3.3).

Dates are formatted as ``Thu, 17 Jul 2014 10:31:49 +0200`` and parsed from
the same layout, optionally followed by a comment such as ``(CET)``.
"""

import datetime
import logging
import re
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional

from django.utils import timezone

from mailmodel.errors import DateFormatError

logger = logging.getLogger(__name__)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

DATE_REGEX = re.compile(
    r"(?P<dow>[A-Za-z]{3})[ \t]*,[ \t]+"
    r"(?P<day>\d{1,2})[ \t]+(?P<month>[A-Za-z]{3})[ \t]+(?P<year>\d{4})[ \t]+"
    r"(?P<time>\d{2}:\d{2}:\d{2})[ \t]+(?P<zone>[+-]\d{4})"
    r"(?:[ \t]*\([^()]*\))?[ \t]*"
)


def format_date(value: Optional[datetime.datetime]) -> str:
    """
    Format a datetime as an RFC 5322 date.

    Returns an empty string for ``None``, the "not a date-time" value.
    Naive datetimes are taken as UTC.
    """
    if value is None:
        return ""
    if timezone.is_naive(value):
        value = timezone.make_aware(value, datetime.timezone.utc)
    return format_datetime(value.replace(microsecond=0))


def parse_date(date_str: str) -> datetime.datetime:
    """
    Parse an RFC 5322 date, e.g. ``Thu, 17 Jul 2014 10:31:49 +0200 (CET)``.

    Args:
        date_str: The Date header value

    Returns:
        Timezone-aware datetime carrying the offset found in the value

    Raises:
        DateFormatError: If the value does not follow the date grammar or
            does not denote a valid date
    """
    match = DATE_REGEX.fullmatch(date_str.strip())
    if match is None:
        raise DateFormatError("Bad date format.")

    dow = match.group("dow").title()
    month = match.group("month").title()
    if dow not in DAY_NAMES or month not in MONTH_NAMES:
        raise DateFormatError("Bad date format.")

    # a single digit day is padded so that all dates share one layout
    normalized = "{}, {} {} {} {} {}".format(
        dow,
        match.group("day").zfill(2),
        month,
        match.group("year"),
        match.group("time"),
        match.group("zone"),
    )
    try:
        parsed = parsedate_to_datetime(normalized)
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug("Could not parse date string '%s': %s", date_str, e)
        raise DateFormatError("Bad date format.") from e

    # "-0000" means UTC with no information about the local offset
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, datetime.timezone.utc)
    return parsed
