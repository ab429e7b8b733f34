"""Exception hierarchy for foli.

All exceptions inherit from :class:`FoliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`foli.exit_codes`.
The CLI entry point :func:`foli.app.main` catches ``FoliError`` and exits
with the matching code.

Subclass hierarchy::

    FoliError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- NoDataError         (exit 4)
    |   +-- CacheMissError  (exit 4)
    +-- NetworkError        (exit 6)
    +-- DecodingError       (exit 7)
    +-- StorageError        (exit 8)
"""

from __future__ import annotations

from typing import Optional

from foli.exit_codes import (
    EXIT_DECODING_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_ERROR,
    EXIT_NO_DATA,
    EXIT_STORAGE_ERROR,
)


class FoliError(Exception):
    """Base exception for all foli errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FoliError):
    """Raised for invalid CLI arguments or conflicting options."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(FoliError):
    """Raised for configuration problems (invalid JSON, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class NoDataError(FoliError):
    """Raised when the requested data does not exist or is not available."""

    exit_code = EXIT_NO_DATA


class CacheMissError(NoDataError):
    """Raised by a cache-only request when no valid cached entry exists.

    This is an expected condition (for example the device is offline and
    the cache was never populated), not a defect.
    """


class NetworkError(FoliError):
    """Raised on transport failures or non-2xx responses from the feed.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the failed response, or ``None`` when
            the request never produced one (DNS failure, timeout, ...).
    """

    exit_code = EXIT_NETWORK_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodingError(FoliError):
    """Raised when a payload (network body or cache file) cannot be decoded."""

    exit_code = EXIT_DECODING_ERROR


class StorageError(FoliError):
    """Raised on local I/O failure while reading, writing, or deleting a cache entry."""

    exit_code = EXIT_STORAGE_ERROR
