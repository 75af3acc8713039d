import logging
from typing import List

from sshpick.models import SOURCE_UNAVAILABLE, HostRecord, HostSource, ParseResult, SourceWarning


logger = logging.getLogger(__name__)


def parse_etc_hosts_line(line: str) -> List[HostRecord]:
    """Return one record per alias on a hosts file line.

    The address is only used to recognise the line; the records carry the
    alias alone and let ssh resolve it.
    """
    comment_idx = line.find("#")
    if comment_idx != -1:
        line = line[:comment_idx]
    fields = line.split()
    return [HostRecord(alias=alias, source=HostSource.HOSTS_FILE) for alias in fields[1:]]


def parse_etc_hosts(path: str) -> ParseResult:
    records: List[HostRecord] = []
    warnings: List[SourceWarning] = []
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                records.extend(parse_etc_hosts_line(line))
    except OSError as exc:
        warning = SourceWarning(path=path, kind=SOURCE_UNAVAILABLE, message="Cannot read hosts file: %s" % exc.strerror)
        logger.warning("%s", warning)
        warnings.append(warning)
        return ParseResult([], warnings)

    logger.debug("Parsed %d host(s) from %s", len(records), path)
    return ParseResult(records, warnings)


__all__ = ["parse_etc_hosts", "parse_etc_hosts_line"]
