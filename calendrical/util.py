"""Utility constants and helpers for calendrical.

Time unit constants represent durations in seconds.
These are used throughout the API for consistent time representation.
"""

from datetime import datetime, timezone

# Time unit constants (all values in seconds)
SECOND = 1
MINUTE = 60
HOUR = 3600
DAY = 86400
WEEK = 604800

NANOSECONDS_PER_SECOND = 1_000_000_000

# Instants count from the Unix epoch; the reference date is exposed for
# callers that exchange offsets relative to 2001-01-01T00:00:00Z.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)
REFERENCE_OFFSET = 978307200

# Supported instants run from the start of UTC year MIN_YEAR to the end of
# MAX_YEAR, both bounds included. Calendar periods and week-years around any
# such instant stay inside datetime's range.
MIN_YEAR = 3
MAX_YEAR = 9997
MIN_OFFSET = int((datetime(MIN_YEAR, 1, 1, tzinfo=timezone.utc) - EPOCH).total_seconds())
MAX_OFFSET = int((datetime(MAX_YEAR + 1, 1, 1, tzinfo=timezone.utc) - EPOCH).total_seconds())
