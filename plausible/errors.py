# =============================================================================
# plausible/errors.py  -  Errors raised outside the validator
# =============================================================================
#
# ValidationError (models.py) is DATA: validate() returns it.  These are
# real exceptions for things the caller cannot fix by editing the query:
# missing configuration, an unreachable API, or an error status from it.
# =============================================================================

from typing import Optional


class PlausibleError(Exception):
    """Base class for configuration and Stats API failures."""


class ConfigError(PlausibleError):
    """The server was started without the settings it needs."""


class PlausibleNetworkError(PlausibleError):
    """The Stats API could not be reached (DNS, refused connection, timeout)."""


class PlausibleApiError(PlausibleError):
    """The Stats API answered with an error status or an unreadable body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
