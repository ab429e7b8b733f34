"""Built-in CLI sub-commands for foli.

* :mod:`~foli.commands.feed` -- ``routes``, ``stops``, ``trips``,
  ``stop-times`` and ``arrivals``, registered directly on the root app.
* :mod:`~foli.commands.cache` -- ``cache status`` and ``cache clear``.
* :mod:`~foli.commands.config` -- view and modify global settings.

Feed and cache commands share :func:`~foli.commands.common.open_client` and
:func:`~foli.commands.common.run` for building a
:class:`~foli.client.FoliClient` from the invocation context.
"""
