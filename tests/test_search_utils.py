from sshpick.models import HostRecord, HostSource
from sshpick.search_utils import alias_matches, filter_records


def make_record(alias, hostname="", user=""):
    return HostRecord(alias=alias, source=HostSource.CONFIG_FILE, hostname=hostname, user=user)


RECORDS = [
    make_record("web-prod", hostname="10.0.0.5"),
    make_record("Web-Staging"),
    make_record("db", user="webmaster"),
]


def test_matches_alias_case_insensitively():
    assert alias_matches(RECORDS[1], "web")
    assert alias_matches(RECORDS[0], "PROD")
    assert not alias_matches(RECORDS[0], "db")


def test_ignores_other_attributes():
    assert not alias_matches(RECORDS[0], "10.0")
    assert not alias_matches(RECORDS[2], "webmaster")


def test_empty_query_matches_everything():
    assert filter_records(RECORDS, "") == tuple(RECORDS)


def test_narrowing_never_adds_rows():
    previous = len(RECORDS)
    for query in ("w", "we", "web", "web-", "web-p", "web-pr"):
        matched = filter_records(RECORDS, query)
        assert len(matched) <= previous
        assert filter_records(RECORDS, query) == matched
        previous = len(matched)
    assert [r.alias for r in filter_records(RECORDS, "web-p")] == ["web-prod"]
