"""Exceptions raised by sshpick.

Problems with individual source files are not exceptions: they are collected
as :class:`sshpick.models.SourceWarning` values next to the catalog. A user
cancelling the selector is not an error either; :func:`run_selector` returns
``None`` in that case.
"""


class SshpickError(Exception):
    """Base class for sshpick errors."""


class EmptyCatalogError(SshpickError):
    """None of the sources yielded a host to choose from."""

    def __init__(self, message: str = "No hosts available to select"):
        super().__init__(message)


class TerminalUnavailableError(SshpickError):
    """The interactive selector could not take over the terminal."""


class InvalidTargetError(SshpickError, ValueError):
    """A connection target is missing or cannot be split into its parts."""


__all__ = [
    "EmptyCatalogError",
    "InvalidTargetError",
    "SshpickError",
    "TerminalUnavailableError",
]
