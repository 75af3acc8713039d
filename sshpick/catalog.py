"""Merge the host sources into one ordered, alias-unique catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sshpick.config import SourcePaths
from sshpick.errors import EmptyCatalogError
from sshpick.etc_hosts import parse_etc_hosts
from sshpick.known_hosts import parse_known_hosts
from sshpick.models import HostRecord, SourceWarning, is_wildcard, source_rank
from sshpick.ssh_config_utils import parse_ssh_config_sources

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of every selectable host."""

    records: Tuple[HostRecord, ...] = ()
    warnings: Tuple[SourceWarning, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[HostRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> HostRecord:
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def aliases(self) -> List[str]:
        return [record.alias for record in self.records]

    def get(self, alias: str) -> Optional[HostRecord]:
        for record in self.records:
            if record.alias == alias:
                return record
        return None


def _catalog_key(record: HostRecord) -> Tuple[int, str]:
    return (source_rank(record.source), record.alias)


def build_catalog(
    *record_lists: Iterable[HostRecord],
    warnings: Sequence[SourceWarning] = (),
) -> Catalog:
    """
    Build a catalog from parser output given in priority order.

    The first record seen for an alias wins, so callers pass the config file
    records first, then the hosts file, then known_hosts. Wildcard and empty
    aliases are dropped whatever their source.
    """
    by_alias: Dict[str, HostRecord] = {}
    for records in record_lists:
        for record in records:
            alias = record.alias
            if not alias or is_wildcard(alias) or alias in by_alias:
                continue
            by_alias[alias] = record

    ordered = sorted(by_alias.values(), key=_catalog_key)
    return Catalog(records=tuple(ordered), warnings=tuple(warnings))


def load_catalog(paths: SourcePaths) -> Catalog:
    """Read all three sources and build the catalog; source problems become warnings."""
    config_result = parse_ssh_config_sources(paths.ssh_config, paths.system_ssh_config, paths.config_dir)
    hosts_result = parse_etc_hosts(paths.hosts_file)
    known_result = parse_known_hosts(paths.known_hosts)

    warnings: List[SourceWarning] = []
    for result in (config_result, hosts_result, known_result):
        warnings.extend(result.warnings)

    catalog = build_catalog(
        config_result.records,
        hosts_result.records,
        known_result.records,
        warnings=warnings,
    )
    logger.info(
        "Loaded %d host(s) (%d from ssh config, %d from hosts file, %d from known_hosts, %d warning(s))",
        len(catalog),
        len(config_result.records),
        len(hosts_result.records),
        len(known_result.records),
        len(warnings),
    )
    return catalog


def require_candidates(catalog: Catalog) -> Catalog:
    """Return *catalog* unchanged, or raise :class:`EmptyCatalogError` if it is empty."""
    if not catalog:
        raise EmptyCatalogError()
    return catalog


__all__ = ["Catalog", "build_catalog", "load_catalog", "require_candidates"]
