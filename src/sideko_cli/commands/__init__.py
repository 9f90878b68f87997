"""Built-in sub-commands for sideko-cli.

Each module defines a Typer sub-application that :func:`sideko_cli.app.main`
mounts on the root app:

- :mod:`~sideko_cli.commands.sdk` -- ``sideko sdk create`` / ``sideko sdk update``.
- :mod:`~sideko_cli.commands.config` -- read and persist API key and base url.
- :mod:`~sideko_cli.commands.api` -- list API projects.
"""
