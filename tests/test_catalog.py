import pytest

from sshpick.catalog import Catalog, build_catalog, load_catalog, require_candidates
from sshpick.config import SourcePaths
from sshpick.errors import EmptyCatalogError
from sshpick.models import SOURCE_UNAVAILABLE, HostRecord, HostSource

CONFIG = HostSource.CONFIG_FILE
HOSTS = HostSource.HOSTS_FILE
KNOWN = HostSource.KNOWN_HOSTS


def test_highest_priority_source_wins():
    catalog = build_catalog(
        [HostRecord("db", CONFIG, hostname="db.internal")],
        [HostRecord("db", HOSTS), HostRecord("cache", HOSTS)],
        [HostRecord("db", KNOWN, hostname="db"), HostRecord("cache", KNOWN, hostname="cache")],
    )

    assert catalog.aliases() == ["db", "cache"]
    assert catalog.get("db").source is CONFIG
    assert catalog.get("cache").source is HOSTS


def test_first_writer_wins_within_a_source():
    catalog = build_catalog([
        HostRecord("web", CONFIG, hostname="first"),
        HostRecord("web", CONFIG, hostname="second"),
    ])
    assert len(catalog) == 1
    assert catalog.get("web").hostname == "first"


def test_ordering_by_rank_then_alias():
    catalog = build_catalog(
        [HostRecord("zulu", CONFIG), HostRecord("alpha", CONFIG)],
        [HostRecord("bravo", HOSTS)],
        [HostRecord("aardvark", KNOWN)],
    )
    assert catalog.aliases() == ["alpha", "zulu", "bravo", "aardvark"]


def test_unknown_source_sorts_last():
    stray = HostRecord("aaa", "future-source")
    catalog = build_catalog([stray, HostRecord("zzz", KNOWN)])
    assert catalog.aliases() == ["zzz", "aaa"]


def test_wildcard_and_empty_aliases_never_admitted():
    catalog = build_catalog(
        [HostRecord("*", CONFIG), HostRecord("web?", CONFIG), HostRecord("", CONFIG)],
        [HostRecord("ok", HOSTS)],
    )
    assert catalog.aliases() == ["ok"]


def test_build_is_reproducible():
    lists = (
        [HostRecord("b", CONFIG), HostRecord("a", CONFIG)],
        [HostRecord("c", HOSTS)],
        [HostRecord("a", KNOWN), HostRecord("d", KNOWN)],
    )
    assert build_catalog(*lists) == build_catalog(*lists)


def test_require_candidates():
    with pytest.raises(EmptyCatalogError):
        require_candidates(Catalog())
    catalog = build_catalog([HostRecord("x", HOSTS)])
    assert require_candidates(catalog) is catalog


def _paths(tmp_path):
    return SourcePaths(
        ssh_config=str(tmp_path / "config"),
        system_ssh_config=str(tmp_path / "ssh_config"),
        config_dir=str(tmp_path / "config.d"),
        known_hosts=str(tmp_path / "known_hosts"),
        hosts_file=str(tmp_path / "hosts"),
    )


def test_load_catalog_merges_all_sources(tmp_path):
    (tmp_path / "config").write_text("Host db\n    HostName db.internal\n    User dba\n")
    (tmp_path / "ssh_config").write_text("Host *\n    ForwardAgent no\n")
    (tmp_path / "hosts").write_text("10.0.0.5 db db1 # primary\n")
    (tmp_path / "known_hosts").write_text("db1,[bastion]:2200 ssh-ed25519 AAAA\n")

    catalog = load_catalog(_paths(tmp_path))

    assert catalog.aliases() == ["db", "db1", "bastion"]
    assert catalog.get("db").source is CONFIG
    assert catalog.get("db1").source is HOSTS
    assert catalog.get("bastion").port == "2200"
    assert catalog.warnings == ()


def test_load_catalog_with_no_sources_is_empty_not_an_error(tmp_path):
    catalog = load_catalog(_paths(tmp_path))

    assert len(catalog) == 0
    kinds = {w.kind for w in catalog.warnings}
    assert kinds == {SOURCE_UNAVAILABLE}
    with pytest.raises(EmptyCatalogError):
        require_candidates(catalog)


def test_known_host_on_custom_port_dedupes_against_config_alias(tmp_path):
    (tmp_path / "config").write_text("Host db1\n    HostName db1.internal\n")
    (tmp_path / "known_hosts").write_text("[db1]:2222 ssh-ed25519 AAAA\n")

    catalog = load_catalog(_paths(tmp_path))

    assert catalog.aliases() == ["db1"]
    assert catalog.get("db1").source is CONFIG
    assert catalog.get("db1").hostname == "db1.internal"
