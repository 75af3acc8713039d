import logging
from typing import List, Optional, Tuple

from sshpick.models import (
    SOURCE_MALFORMED,
    SOURCE_UNAVAILABLE,
    HostRecord,
    HostSource,
    ParseResult,
    SourceWarning,
    is_wildcard,
)


logger = logging.getLogger(__name__)

HASHED_MARKER = "|"
CERT_AUTHORITY_MARKER = "@cert-authority"
REVOKED_MARKER = "@revoked"


def _warn(warnings: List[SourceWarning], path: str, kind: str, message: str, line: Optional[int] = None):
    warning = SourceWarning(path=path, kind=kind, message=message, line=line)
    logger.warning("%s", warning)
    warnings.append(warning)


def split_host_token(token: str) -> Tuple[str, str]:
    """Split a known_hosts host entry into ``(hostname, port)``.

    ``[addr]:port`` carries a non-standard port; any other form has none.
    """
    if token.startswith("[") and "]:" in token:
        host, _, port = token[1:].partition("]:")
        return host, port
    if token.startswith("[") and token.endswith("]"):
        return token[1:-1], ""
    return token, ""


def parse_known_hosts_line(line: str) -> Optional[List[HostRecord]]:
    """Return the records declared by one known_hosts line.

    A bracketed ``[addr]:port`` entry is listed under its bare address, with
    the port kept in its own field.

    Returns ``None`` for a line that has a host field but no key, which the
    caller reports as malformed.
    """
    fields = line.split()
    if not fields or fields[0].startswith("#"):
        return []
    if fields[0].startswith("@"):
        if fields[0] != CERT_AUTHORITY_MARKER:
            return []
        fields = fields[1:]
    if len(fields) < 2:
        return None

    records: List[HostRecord] = []
    for token in fields[0].split(","):
        if not token or token.startswith(HASHED_MARKER) or is_wildcard(token):
            continue
        hostname, port = split_host_token(token)
        if not hostname:
            continue
        records.append(HostRecord(alias=hostname, source=HostSource.KNOWN_HOSTS, hostname=hostname, port=port))
    return records


def parse_known_hosts(path: str) -> ParseResult:
    """Read every literal host name from a known_hosts file."""
    records: List[HostRecord] = []
    warnings: List[SourceWarning] = []
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = [line.rstrip("\n") for line in f]
    except OSError as exc:
        _warn(warnings, path, SOURCE_UNAVAILABLE, "Cannot read known_hosts: %s" % exc.strerror)
        return ParseResult(records, warnings)

    for lineno, line in enumerate(lines, 1):
        if not line.strip():
            continue
        parsed = parse_known_hosts_line(line)
        if parsed is None:
            _warn(warnings, path, SOURCE_MALFORMED, "Entry has no host key", lineno)
            continue
        records.extend(parsed)

    logger.debug("Parsed %d host(s) from %s", len(records), path)
    return ParseResult(records, warnings)


__all__ = ["parse_known_hosts", "parse_known_hosts_line", "split_host_token"]
