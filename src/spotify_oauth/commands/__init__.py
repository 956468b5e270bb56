"""Built-in CLI sub-commands for spotify-oauth.

* :mod:`~spotify_oauth.commands.flow` -- ``scopes``, ``authorize``,
  ``exchange`` and ``login``, registered directly on the root app.
* :mod:`~spotify_oauth.commands.config` -- the ``config`` sub-command
  group for viewing and editing ``config.json``.
"""
