"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~foli.exceptions.FoliError` subclass.  Shell scripts
wrapping the ``foli`` command can tell an offline cache miss apart from a
network outage without parsing stderr.

Example::

    $ foli --behavior cached-only routes
    $ echo $?
    4   # EXIT_NO_DATA -- nothing valid in the cache
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NO_DATA = 4
"""A cache-only request found no valid cached data."""

EXIT_NETWORK_ERROR = 6
"""The feed could not be reached or answered with a non-success status."""

EXIT_DECODING_ERROR = 7
"""A payload from the feed could not be decoded."""

EXIT_STORAGE_ERROR = 8
"""The local cache directory could not be read or written."""
