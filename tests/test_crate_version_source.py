import pytest
from semver import Version

from binkit.crate_version_source import (
    CrateInfo,
    CrateSource,
    CrateVersionSource,
    CvsParseError,
    Source,
    SourceType,
)

CRATES_IO = "https://github.com/rust-lang/crates.io-index"

LINES = [
    "alacritty 0.10.1 (registry+https://github.com/rust-lang/crates.io-index)",
    "cargo-audit 0.17.0 (registry+https://github.com/rust-lang/crates.io-index)",
    "cargo-nextest 0.9.26 (registry+https://github.com/rust-lang/crates.io-index)",
    "irust 1.63.3 (registry+https://github.com/rust-lang/crates.io-index)",
]


def test_parse_registry_line():
    cvs = CrateVersionSource.parse(LINES[0])
    assert cvs.name == "alacritty"
    assert cvs.version == Version.parse("0.10.1")
    assert cvs.source == Source(SourceType.REGISTRY, CRATES_IO)


@pytest.mark.parametrize("line", LINES)
def test_display_round_trip(line):
    assert str(CrateVersionSource.parse(line)) == line


@pytest.mark.parametrize(
    "line",
    [
        "tool 1.2.3 (git+https://github.com/owner/tool?rev=abc#abc)",
        "tool 1.2.3 (path+file:///home/user/tool)",
    ],
)
def test_git_and_path_round_trip(line):
    cvs = CrateVersionSource.parse(line)
    assert CrateVersionSource.parse(str(cvs)) == cvs
    assert str(cvs) == line


def test_host_only_url_gets_root_path():
    cvs = CrateVersionSource.parse("a 1.0.0 (git+https://example.com)")
    assert str(cvs.source) == "git+https://example.com/"


def test_from_crate_info():
    info = CrateInfo(
        name="cargo-binstall",
        version_req="*",
        current_version=Version(0, 11, 1),
        source=CrateSource.cratesio_registry(),
        target="x86_64-unknown-linux-gnu",
        bins=["cargo-binstall"],
    )
    cvs = CrateVersionSource.from_crate_info(info)
    assert str(cvs) == f"cargo-binstall 0.11.1 (registry+{CRATES_IO})"
    assert CrateVersionSource.parse(str(cvs)) == cvs


def test_source_from_crate_source():
    source = CrateSource(SourceType.GIT, "https://github.com/owner/tool")
    assert Source.from_crate_source(source) == Source(SourceType.GIT, source.url)


def test_sparse_display_appends_slash_once():
    with_slash = "https://index.crates.io/"
    without_slash = with_slash.rstrip("/")
    assert str(Source(SourceType.SPARSE, with_slash)) == "sparse+" + with_slash
    assert str(Source(SourceType.SPARSE, without_slash)) == "sparse+" + without_slash + "/"


def test_sparse_is_not_parsed():
    with pytest.raises(CvsParseError, match="unknown source type sparse\\+"):
        CrateVersionSource.parse("a 1.0.0 (sparse+https://index.crates.io/)")


@pytest.mark.parametrize("line", ["onlyname", "name 1.0.0"])
def test_bad_format(line):
    with pytest.raises(CvsParseError, match="bad CVS format"):
        CrateVersionSource.parse(line)


def test_bad_source():
    with pytest.raises(CvsParseError, match="bad source format"):
        CrateVersionSource.parse("a 1.0.0 (registry)")


def test_bad_version():
    with pytest.raises(CvsParseError, match="Failed to parse version in cvs"):
        CrateVersionSource.parse(f"a notaversion (registry+{CRATES_IO})")


@pytest.mark.parametrize("url", ["not a url", "https://"])
def test_bad_url(url):
    with pytest.raises(CvsParseError, match="Failed to parse url in cvs"):
        CrateVersionSource.parse(f"a 1.0.0 (registry+{url})")


def test_ordering_by_name_then_version():
    parsed = [CrateVersionSource.parse(line) for line in reversed(LINES)]
    assert [cvs.name for cvs in sorted(parsed)] == ["alacritty", "cargo-audit", "cargo-nextest", "irust"]
    older = CrateVersionSource.parse(f"a 0.1.0 (registry+{CRATES_IO})")
    newer = CrateVersionSource.parse(f"a 0.2.0 (registry+{CRATES_IO})")
    assert older < newer


def test_cratesio_registry():
    source = CrateSource.cratesio_registry()
    assert source.source_type is SourceType.REGISTRY
    assert source.url == CRATES_IO