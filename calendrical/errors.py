"""Exceptions raised by calendrical.

All of these are expected, recoverable outcomes. Callers are meant to catch
them locally and pick a policy (prompt, skip, or relax the match).
"""


class CalendricalError(Exception):
    """Base class for calendrical errors."""


class FieldsInvalid(CalendricalError, ValueError):
    """A field set denotes no instant under a calendar's rules."""


class NotFound(CalendricalError, LookupError):
    """No occurrence matches the requested fields."""


class DimensionMismatch(CalendricalError, TypeError):
    """A unit or quantity belongs to a different physical dimension."""
