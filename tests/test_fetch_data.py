import pytest

from binkit.fetch_data import (
    FetchError,
    InvalidPkgFmtError,
    InvalidSignatureError,
    MissingSignatureError,
    RepoInfo,
    detect_subcrate,
)
from binkit.hosting import RepositoryHost


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/RustSec/rustsec/tree/main/cargo-audit",
        "https://github.com/RustSec/rustsec/tree/master/cargo-audit",
    ],
)
def test_detect_subcrate_github_plain(url):
    host = RepositoryHost.guess_git_hosting_services(url)
    assert host is RepositoryHost.GITHUB
    repo, subcrate = detect_subcrate(url, host)
    assert subcrate == "cargo-audit"
    assert repo == "https://github.com/RustSec/rustsec"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/rustwasm/wasm-bindgen/tree/main/crates/cli",
        "https://github.com/rustwasm/wasm-bindgen/tree/master/crates/cli",
    ],
)
def test_detect_subcrate_github_crates_dir(url):
    host = RepositoryHost.guess_git_hosting_services(url)
    assert host is RepositoryHost.GITHUB
    repo, subcrate = detect_subcrate(url, host)
    assert subcrate == "cli"
    assert repo == "https://github.com/rustwasm/wasm-bindgen"


@pytest.mark.parametrize(
    "url",
    [
        "https://gitlab.kitware.com/NobodyXu/hello/-/blob/main/cargo-binstall",
        "https://gitlab.kitware.com/NobodyXu/hello/-/blob/master/cargo-binstall",
    ],
)
def test_detect_subcrate_gitlab(url):
    host = RepositoryHost.guess_git_hosting_services(url)
    assert host is RepositoryHost.GITLAB
    repo, subcrate = detect_subcrate(url, host)
    assert subcrate == "cargo-binstall"
    assert repo == "https://gitlab.kitware.com/NobodyXu/hello"


def test_detect_subcrate_codeberg():
    url = "https://codeberg.org/owner/repo/src/branch/main/tool"
    repo, subcrate = detect_subcrate(url, RepositoryHost.CODEBERG)
    assert subcrate == "tool"
    assert repo == "https://codeberg.org/owner/repo"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/RustSec/rustsec",
        "https://github.com/RustSec/rustsec/tree/main",
        "https://github.com/RustSec/rustsec/blob/main/cargo-audit",
        "https://github.com/RustSec/rustsec/tree/main/cargo-audit/src",
        "https://github.com/RustSec/rustsec/tree/main/cargo-audit/",
        "https://github.com/rustwasm/wasm-bindgen/tree/main/crates",
    ],
)
def test_detect_subcrate_rejects_non_subcrate_urls(url):
    assert detect_subcrate(url, RepositoryHost.GITHUB) == (url, None)


def test_detect_subcrate_unknown_host_is_untouched():
    url = "https://bitbucket.org/owner/repo/tree/main/sub"
    assert detect_subcrate(url, RepositoryHost.BITBUCKET) == (url, None)


def test_invalid_pkg_fmt_error_message():
    err = InvalidPkgFmtError(
        crate_name="cargo-binstall",
        version="1.2.3",
        target="x86_64-unknown-linux-gnu",
        pkg_url="https://example.com/pkg",
        reason="pkg-fmt is not specified",
    )
    assert isinstance(err, FetchError)
    assert str(err) == (
        "Invalid pkg-url https://example.com/pkg for cargo-binstall@1.2.3 "
        "on x86_64-unknown-linux-gnu: pkg-fmt is not specified"
    )
    assert err.reason == "pkg-fmt is not specified"


def test_missing_signature_error():
    err = MissingSignatureError()
    assert isinstance(err, FetchError)
    assert "No signature present" in str(err)


def test_invalid_signature_error():
    err = InvalidSignatureError()
    assert isinstance(err, FetchError)
    assert "Failed to verify signature" in str(err)


def test_repo_info_from_detected_subcrate():
    url = "https://github.com/RustSec/rustsec/tree/main/cargo-audit"
    host = RepositoryHost.guess_git_hosting_services(url)
    repo, subcrate = detect_subcrate(url, host)
    info = RepoInfo(repo=repo, repository_host=host, subcrate=subcrate)
    assert info.is_private is False
    assert info == RepoInfo("https://github.com/RustSec/rustsec", RepositoryHost.GITHUB, "cargo-audit")