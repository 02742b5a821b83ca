import pytest

from binkit.hosting import (
    FULL_FILENAMES,
    GITHUB_RELEASE_PATHS,
    RepositoryHost,
    apply_filenames_to_paths,
    url_domain,
)
from binkit.template import Template

VALUES = {
    "repo": "https://host/owner/repo",
    "name": "tool",
    "target": "x86_64-unknown-linux-gnu",
    "version": "1.0.0",
    "subcrate": "sub",
    "archive-suffix": ".tgz",
}


@pytest.mark.parametrize(
    "url, host",
    [
        ("https://github.com/RustSec/rustsec", RepositoryHost.GITHUB),
        ("https://gitlab.kitware.com/NobodyXu/hello", RepositoryHost.GITLAB),
        ("https://bitbucket.org/owner/repo", RepositoryHost.BITBUCKET),
        ("https://sourceforge.net/projects/repo", RepositoryHost.SOURCEFORGE),
        ("https://codeberg.org/owner/repo", RepositoryHost.CODEBERG),
        ("https://www.bitbucket.org/owner/repo", RepositoryHost.UNKNOWN),
        ("https://example.com/owner/repo", RepositoryHost.UNKNOWN),
        ("https://127.0.0.1/owner/repo", RepositoryHost.UNKNOWN),
    ],
)
def test_guess_git_hosting_services(url, host):
    assert RepositoryHost.guess_git_hosting_services(url) is host


def test_url_domain():
    assert url_domain("https://github.com/owner/repo") == "github.com"
    assert url_domain("https://[::1]/x") is None
    assert url_domain("file:///tmp/x") is None


def test_unknown_has_no_templates():
    assert RepositoryHost.UNKNOWN.default_pkg_url_templates() is None


def test_github_first_template():
    templates = RepositoryHost.GITHUB.default_pkg_url_templates()
    assert templates[0] == Template.parse(
        "{ repo }/releases/download/{ version }/{ name }-{ target }-v{ version }{ archive-suffix }"
    )


def test_codeberg_matches_github():
    assert (
        RepositoryHost.CODEBERG.default_pkg_url_templates()
        == RepositoryHost.GITHUB.default_pkg_url_templates()
    )


@pytest.mark.parametrize(
    "host",
    [
        RepositoryHost.GITHUB,
        RepositoryHost.GITLAB,
        RepositoryHost.BITBUCKET,
        RepositoryHost.SOURCEFORGE,
    ],
)
def test_templates_are_unique_and_render(host):
    templates = host.default_pkg_url_templates()
    assert len(set(templates)) == len(templates)
    for template in templates:
        assert template.has_key("repo")
        assert template.has_key("name")
        assert template.has_key("target")
        assert template.render(VALUES).startswith(VALUES["repo"])


def test_bitbucket_only_full_filenames():
    templates = RepositoryHost.BITBUCKET.default_pkg_url_templates()
    assert len(templates) == len(FULL_FILENAMES)
    assert all(t.has_key("version") for t in templates)


def test_github_includes_noversion_filenames():
    templates = RepositoryHost.GITHUB.default_pkg_url_templates()
    assert any(not t.has_key("version") for t in templates)
    assert any(t.has_key("subcrate") for t in templates)


def test_sourceforge_suffix():
    templates = RepositoryHost.SOURCEFORGE.default_pkg_url_templates()
    assert all(t.render(VALUES).endswith("/download") for t in templates)


def test_apply_filenames_to_paths_order():
    paths = [Template.parse("a"), Template.parse("b")]
    filenames = [[Template.parse("1")], [Template.parse("2")]]
    result = apply_filenames_to_paths(paths, filenames, "!")
    assert [str(t) for t in result] == ["a1!", "b1!", "a2!", "b2!"]


def test_github_templates_group_by_filename():
    templates = RepositoryHost.GITHUB.default_pkg_url_templates()
    head = templates[: len(GITHUB_RELEASE_PATHS)]
    assert head == [path + FULL_FILENAMES[0] for path in GITHUB_RELEASE_PATHS]