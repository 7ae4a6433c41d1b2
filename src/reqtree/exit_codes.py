"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~reqtree.exceptions.ReqtreeError` subclass.

Example::

    $ reqtree export out.yaml
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the collection is empty
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked on invalid input (empty collection, bad path, no server)."""

EXIT_AUTH_FAILURE = 3
"""An auth descriptor could not be applied."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PARSE_ERROR = 7
"""The OpenAPI document could not be parsed."""
