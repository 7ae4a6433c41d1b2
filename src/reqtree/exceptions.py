"""Exception hierarchy for reqtree.

All exceptions inherit from :class:`ReqtreeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`reqtree.exit_codes`.
Every component raises only ``ReqtreeError`` subclasses across its public
boundary, so callers (the workspace, the CLI) can handle failures with a
single ``except`` clause and decide how to present the message.

Subclass hierarchy::

    ReqtreeError (exit 1)
    +-- ParseError          (exit 7)
    +-- ValidationError     (exit 2)
    +-- RequestBuildError   (exit 2)
    +-- TransportError      (exit 6)
    +-- AuthError           (exit 3)
    +-- ConfigError         (exit 1)
    +-- AlreadyExistsError  (exit 1)
"""

from reqtree.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
)


class ReqtreeError(Exception):
    """Base exception for all reqtree errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ParseError(ReqtreeError):
    """Raised when an OpenAPI document is malformed YAML/JSON or not a mapping.

    Aborts the import; no partial tree is ever applied.
    """

    exit_code = EXIT_PARSE_ERROR


class ValidationError(ReqtreeError):
    """Raised when the collection cannot be exported or saved as requested.

    Examples are an empty tree, a tree without exportable operations, or a
    request saved with a blank path.
    """

    exit_code = EXIT_INVALID_USAGE


class RequestBuildError(ReqtreeError):
    """Raised when a saved request cannot be compiled into a literal HTTP call.

    Raised before dispatch, so no network call is made.
    """

    exit_code = EXIT_INVALID_USAGE


class TransportError(ReqtreeError):
    """Raised by a transport on network, timeout, or protocol failure."""

    exit_code = EXIT_CONNECTION_ERROR


class AuthError(ReqtreeError):
    """Raised when no auth plugin handles a descriptor variant."""

    exit_code = EXIT_AUTH_FAILURE


class ConfigError(ReqtreeError):
    """Raised for configuration or workspace-file problems."""

    exit_code = EXIT_GENERIC_FAILURE


class AlreadyExistsError(ReqtreeError):
    """Raised by :func:`~reqtree.workspace.write_text` when ``create_new`` hits an existing file."""

    exit_code = EXIT_GENERIC_FAILURE
