import re
from datetime import datetime, timezone

from dateutil import parser as date_parser

from devevents.core.errors import InvalidDateError

# Two defaults that differ in every calendar field; a date parsed the same
# under both names its year, month and day explicitly
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)

TIME_24H = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)


def normalize_date(date_string: str) -> str:
    """
    Convert a date string to ISO format (YYYY-MM-DD).

    Supports the formats dateutil understands ("2025-11-07", "November 7, 2025",
    "07 Nov 2025", ...). Timezone-aware inputs are converted to UTC before the
    calendar fields are read, so the stored day never drifts with the server's
    local timezone.

    Partial inputs ("14:30", "Monday", "December", "2025") are rejected
    rather than completed from today's date.

    Raises:
        InvalidDateError: If the string does not name a full calendar date
    """
    cleaned = date_string.strip()
    try:
        parsed = date_parser.parse(cleaned, default=_DEFAULT_A)
        check = date_parser.parse(cleaned, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError):
        raise InvalidDateError(date_string)

    if parsed.date() != check.date():
        raise InvalidDateError(date_string)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)

    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


def normalize_time(time_string: str) -> str:
    """
    Convert a time string to 24-hour HH:MM.

    Canonical values pass through. "2:30 PM" becomes "14:30", "12:00 AM"
    becomes "00:00". Anything else is returned trimmed but otherwise
    unchanged; this is a best-effort normalization, not a validator.
    """
    cleaned = time_string.strip()

    if TIME_24H.match(cleaned):
        return cleaned

    match = TIME_12H.match(cleaned)
    if match:
        hours = int(match.group(1))
        minutes = match.group(2)
        meridiem = match.group(3).upper()

        if meridiem == "PM" and hours != 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0

        return f"{hours:02d}:{minutes}"

    # Unrecognized formats are stored as given
    return cleaned
