"""Parsing of the loose date/time strings shown on article pages."""

import logging
import re
from datetime import datetime, tzinfo


logger = logging.getLogger(__name__)


# Day/month/year as printed on the site, e.g. "12/10/2024"
DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")

# Hour:minute, e.g. "08:30"
TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{1,2})")


class DateTimeParser:
    """Extracts a timestamp from free-form text such as "Thứ Bảy, 12/10/2024 - 08:30".

    The date and time tokens are searched independently anywhere in the text,
    so weekday names and separators around them are ignored. Values are read
    as local wall-clock time; when a timezone is given it is attached to the
    result, otherwise the result is naive.

    Attributes:
        tz: Timezone attached to parsed values, or None for naive datetimes
    """

    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz

    def parse(self, text: str | None) -> datetime | None:
        """Parse a date/time string.

        Args:
            text: Display text from the page, may be None or empty

        Returns:
            Parsed datetime, or None if either token is missing or the
            values do not form a real calendar date and time

        Example:
            >>> DateTimeParser().parse("Thứ Bảy, 12/10/2024 - 08:30")
            datetime.datetime(2024, 10, 12, 8, 30)
            >>> DateTimeParser().parse("2 giờ trước") is None
            True
        """
        if not text:
            return None

        date_match = DATE_PATTERN.search(text)
        time_match = TIME_PATTERN.search(text)
        if not date_match or not time_match:
            return None

        day, month, year = (int(g) for g in date_match.groups())
        hour, minute = (int(g) for g in time_match.groups())

        try:
            parsed = datetime(year, month, day, hour, minute)
        except ValueError as e:
            logger.warning(f"Ignoring invalid date/time '{text}': {e}")
            return None

        if self.tz is not None:
            parsed = parsed.replace(tzinfo=self.tz)

        return parsed
