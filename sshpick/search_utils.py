from __future__ import annotations

from typing import Iterable, Tuple

from sshpick.models import HostRecord


def alias_matches(record: HostRecord, query: str) -> bool:
    """Return True if the record's alias contains *query*, ignoring case.

    Only the alias is searched; host names, users and ports are not.
    """
    if not query:
        return True
    return query.casefold() in record.alias.casefold()


def filter_records(records: Iterable[HostRecord], query: str) -> Tuple[HostRecord, ...]:
    """Return the records matching *query*, keeping their order."""
    return tuple(record for record in records if alias_matches(record, query))


__all__ = ["alias_matches", "filter_records"]
