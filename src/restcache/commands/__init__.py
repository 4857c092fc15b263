"""Built-in CLI sub-commands for restcache.

Each module exposes a Typer app (or command function) registered by
:func:`restcache.app.main`:

* :mod:`~restcache.commands.request` -- ``request`` and ``call``.
* :mod:`~restcache.commands.cache` -- ``cache stats|keys|invalidate|clear``.
* :mod:`~restcache.commands.config` -- ``config show|set|reset``.
* :mod:`~restcache.commands.profile` -- ``profile add|list|show|remove``.
"""
