"""
Helpers for turning a selection into an ssh command line.

The selector only produces strings: a target such as ``ops@[db::1]:2222``, a
jump host and two token lists. This module composes targets from host
records, splits them back into user, host and port, and assembles the argv
that is finally handed to ``ssh``.
"""

from __future__ import annotations

from typing import List, NamedTuple, Optional

from sshpick.errors import InvalidTargetError

SSH_BINARY = "ssh"
SOCKS_PROXY_BIND = "0.0.0.0:1080"
SOCKS_PROXY_FLAGS = "-CqTNn"


class Target(NamedTuple):
    user: str
    host: str
    port: str


def format_host(host: Optional[str]) -> str:
    """Bracket *host* when it contains a colon (a literal IPv6 address)."""
    host = (host or "").strip()
    if not host:
        return ""
    if ":" in host and not (host.startswith("[") and host.endswith("]")):
        return f"[{host}]"
    return host


def compose_target(user: Optional[str], hostname: str, port: Optional[str]) -> str:
    """Return ``user@[hostname]:port`` leaving out whatever is empty."""
    target = format_host(hostname)
    if user:
        target = f"{user}@{target}"
    if port:
        target = f"{target}:{port}"
    return target


def split_target(target: str) -> Target:
    """
    Split a target string into user, host and port.

    The last ``@`` separates the user and the last colon outside brackets
    separates the port. Brackets around an IPv6 address are removed. An
    unbracketed host with more than one colon is taken as a bare IPv6
    address without a port.
    """
    target = (target or "").strip()
    if not target:
        raise InvalidTargetError("Connection target is empty")

    user, sep, hostport = target.rpartition("@")
    if not sep:
        user, hostport = "", target

    host, port = hostport, ""
    if hostport.startswith("["):
        closing = hostport.find("]")
        if closing == -1:
            raise InvalidTargetError(f"Unbalanced brackets in target: {target}")
        host = hostport[1:closing]
        rest = hostport[closing + 1:]
        if rest.startswith(":"):
            port = rest[1:]
        elif rest:
            raise InvalidTargetError(f"Unexpected text after address in target: {target}")
    elif hostport.count(":") == 1:
        host, _, port = hostport.partition(":")

    if not host:
        raise InvalidTargetError(f"Target has no host: {target}")
    return Target(user, host, port)


def build_ssh_command(result, *, proxy: bool = False) -> List[str]:
    """
    Return the argv list for connecting to the selection in *result*.

    Args:
        result: :class:`sshpick.tui.selector.SelectionResult` (or anything with
            ``target``, ``proxy_jump``, ``extra_options`` and
            ``remote_command``).
        proxy: Open a SOCKS proxy on ``0.0.0.0:1080`` instead of a shell; the
            remote command is ignored in that mode.
    """
    user, host, port = split_target(result.target)

    cmd: List[str] = [SSH_BINARY]
    cmd.extend(result.extra_options)
    if proxy:
        cmd.extend([SOCKS_PROXY_FLAGS, "-D", SOCKS_PROXY_BIND])

    jump = (result.proxy_jump or "").strip()
    if jump:
        cmd.extend(["-J", jump])
    if port:
        cmd.extend(["-p", port])

    cmd.append(f"{user}@{host}" if user else host)

    if not proxy:
        cmd.extend(result.remote_command)
    return cmd


__all__ = ["Target", "build_ssh_command", "compose_target", "format_host", "split_target"]
