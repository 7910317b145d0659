"""The process-wide "current" calendar.

The user's calendar, time zone and locale can change while a process runs,
so nothing here is cached: every call reads the environment again and builds
a fresh Calendar. Code that needs a stable or substituted calendar (tests, a
request handler serving a user in another zone) wraps itself in
``override(calendar)``.

Environment variables, first match wins:

- calendar: ``CALENDRICAL_CALENDAR`` (default "gregorian")
- time zone: ``CALENDRICAL_TZ``, ``TZ`` (default: the system local zone)
- locale: ``CALENDRICAL_LOCALE``, ``LC_ALL``, ``LC_TIME``, ``LANG``
"""

import logging
import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import tzinfo
from threading import Lock

from dateutil import tz as dateutil_tz

from calendrical.calendar import Calendar

logger = logging.getLogger(__name__)

_read_lock = Lock()
_override: ContextVar[Calendar | None] = ContextVar("calendrical_override", default=None)

_CALENDAR_VARS = ("CALENDRICAL_CALENDAR",)
_TZ_VARS = ("CALENDRICAL_TZ", "TZ")
_LOCALE_VARS = ("CALENDRICAL_LOCALE", "LC_ALL", "LC_TIME", "LANG")


@dataclass(frozen=True)
class Settings:
    """A snapshot of the calendar-related process settings."""

    identifier: str
    time_zone: str | None
    locale: str | None

    def zone(self) -> tzinfo | str:
        if self.time_zone is None:
            return dateutil_tz.tzlocal()
        return self.time_zone

    def calendar(self) -> Calendar:
        return Calendar(self.identifier, self.zone(), locale=self.locale)


def _first(environ: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def _zone_name(value: str | None) -> str | None:
    # POSIX allows TZ=":Europe/Paris"
    if value is None:
        return None
    return value[1:] if value.startswith(":") else value


def current_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read a fresh settings snapshot from ``environ`` (default ``os.environ``)."""
    with _read_lock:
        source = dict(os.environ if environ is None else environ)
    settings = Settings(
        identifier=_first(source, _CALENDAR_VARS) or "gregorian",
        time_zone=_zone_name(_first(source, _TZ_VARS)),
        locale=_first(source, _LOCALE_VARS),
    )
    logger.debug("current calendar settings: %s", settings)
    return settings


def current(environ: Mapping[str, str] | None = None) -> Calendar:
    """Return the calendar in effect for the caller.

    An active ``override`` wins; otherwise a new Calendar is built from the
    current settings. Never cached, so later changes to the environment are
    seen by the next call.
    """
    overridden = _override.get()
    if overridden is not None:
        return overridden
    return current_settings(environ).calendar()


@contextmanager
def override(calendar: Calendar) -> Iterator[Calendar]:
    """Make ``calendar`` the current calendar for this thread or task.

    Example:
        >>> with override(Calendar("gregorian", tz="Asia/Tokyo")):
        ...     current().time_zone
        'Asia/Tokyo'
    """
    token = _override.set(calendar)
    try:
        yield calendar
    finally:
        _override.reset(token)
