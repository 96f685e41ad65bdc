"""Built-in CLI sub-commands for safenet.

* :mod:`~safenet.commands.config` -- create, list, show and delete profiles.
* :mod:`~safenet.commands.auth` -- authorize, check, revoke and forget the
  profile's session.
* :mod:`~safenet.commands.nfs` -- browse and edit the drive.
* :mod:`~safenet.commands.dns` -- manage long names and services.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :func:`safenet.app.main`.
"""
