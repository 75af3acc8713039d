"""Host records and the values the source parsers hand back."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, NamedTuple, Optional


WILDCARD_CHARS = "*?%"


class HostSource(enum.Enum):
    """Where a host record was discovered, in priority order."""

    CONFIG_FILE = "ssh config"
    HOSTS_FILE = "hosts file"
    KNOWN_HOSTS = "known hosts"

    @property
    def label(self) -> str:
        return self.value


_SOURCE_RANKS = {
    HostSource.CONFIG_FILE: 0,
    HostSource.HOSTS_FILE: 1,
    HostSource.KNOWN_HOSTS: 2,
}


def source_rank(source) -> int:
    """Return the priority rank for *source*; unknown tags sort last."""
    return _SOURCE_RANKS.get(source, len(_SOURCE_RANKS))


def is_wildcard(alias: str) -> bool:
    """Return True for host patterns that can never name a single host."""
    return alias.startswith("!") or any(ch in alias for ch in WILDCARD_CHARS)


@dataclass(frozen=True)
class HostRecord:
    """One candidate endpoint.

    ``hostname`` may be empty, in which case the alias itself is the address
    ssh will resolve. ``port``, ``user`` and ``proxy_jump`` are empty when the
    source did not provide them.
    """

    alias: str
    source: HostSource
    hostname: str = ""
    port: str = ""
    user: str = ""
    proxy_jump: str = ""

    @property
    def resolved_hostname(self) -> str:
        return self.hostname or self.alias


SOURCE_UNAVAILABLE = "SourceUnavailable"
SOURCE_MALFORMED = "SourceMalformed"


@dataclass(frozen=True)
class SourceWarning:
    """A non-fatal problem found while reading a source file."""

    path: str
    kind: str
    message: str
    line: Optional[int] = None

    def __str__(self):
        location = f"{self.path}:{self.line}" if self.line else self.path
        return f"{location}: {self.message}"


class ParseResult(NamedTuple):
    records: List[HostRecord]
    warnings: List[SourceWarning]


__all__ = [
    "HostRecord",
    "HostSource",
    "ParseResult",
    "SOURCE_MALFORMED",
    "SOURCE_UNAVAILABLE",
    "SourceWarning",
    "WILDCARD_CHARS",
    "is_wildcard",
    "source_rank",
]
