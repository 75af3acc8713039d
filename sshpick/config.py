"""
Source locations for sshpick.

Nothing is persisted between runs, so configuration is limited to where the
three host sources live. Defaults are derived from the current user's home
directory; the command line can override each path individually.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

try:
    import pwd
except ImportError:  # pragma: no cover - not available on Windows
    pwd = None

logger = logging.getLogger(__name__)

SYSTEM_SSH_CONFIG = "/etc/ssh/ssh_config"
SYSTEM_HOSTS_FILE = "/etc/hosts"


def _normalize_path(path: str) -> str:
    """Expand user references and return an absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def get_home_dir() -> str:
    """Return the home directory of the user running sshpick.

    The password database is consulted first so that a stale ``$HOME`` does
    not redirect the lookup.
    """
    home_dir = ""
    if pwd is not None:
        try:
            home_dir = pwd.getpwuid(os.getuid()).pw_dir
        except KeyError:
            logger.debug("No password database entry for uid %s", os.getuid())

    if not home_dir or not str(home_dir).strip():
        try:
            home_dir = str(Path.home())
        except RuntimeError:
            home_dir = ""

    if not home_dir:
        logger.warning(
            "Unable to determine the user's home directory; "
            "falling back to the current working directory for SSH data."
        )
        home_dir = os.getcwd()

    return _normalize_path(home_dir)


def get_ssh_dir() -> str:
    """Return the user's SSH directory."""
    return os.path.join(get_home_dir(), ".ssh")


@dataclass(frozen=True)
class SourcePaths:
    """Files and directories the catalog is built from."""

    ssh_config: str
    system_ssh_config: str
    config_dir: str
    known_hosts: str
    hosts_file: str

    @classmethod
    def default(cls) -> "SourcePaths":
        ssh_dir = get_ssh_dir()
        return cls(
            ssh_config=os.path.join(ssh_dir, "config"),
            system_ssh_config=SYSTEM_SSH_CONFIG,
            config_dir=os.path.join(ssh_dir, "config.d"),
            known_hosts=os.path.join(ssh_dir, "known_hosts"),
            hosts_file=SYSTEM_HOSTS_FILE,
        )

    def override(self, **paths) -> "SourcePaths":
        """Return a copy with every non-empty keyword replacing its path."""
        changes = {key: _normalize_path(value) for key, value in paths.items() if value}
        return replace(self, **changes)


__all__ = ["SourcePaths", "get_home_dir", "get_ssh_dir"]
