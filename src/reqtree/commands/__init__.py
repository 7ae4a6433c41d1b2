"""Built-in CLI sub-commands for reqtree.

* :mod:`~reqtree.commands.collection` -- import, export, and edit the
  collection tree (``import``, ``export``, ``tree``, ``mkdir``, ``rename``,
  ``rm``, ``mv``).
* :mod:`~reqtree.commands.servers` -- manage servers and their auth.
* :mod:`~reqtree.commands.send` -- compile and send a saved request.

Single commands are plain callbacks registered on the root app; the
``servers`` group is a :class:`typer.Typer` sub-application.
"""
