"""
Exceptions raised by the Nominatim client.

Every upstream failure (network error, timeout, non-2xx status, unusable
body) collapses into ``NominatimRequestError`` so callers never see the
transport library's exception types.
"""


class NominatimError(Exception):
    """Base class for all client errors."""


class NominatimRequestError(NominatimError):
    pass


class NominatimInputError(NominatimError, ValueError):
    """Raised for invalid arguments, before any cache or network access."""
