"""Known git hosting services and their default release download URL templates."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable, Sequence
from enum import Enum
from itertools import chain
from urllib.parse import urlsplit

from binkit.template import Template


def _templates(*sources: str) -> tuple[Template, ...]:
    return tuple(Template.parse(source) for source in sources)


# Keep in sync with the directories probed when inferring the binary directory.
FULL_FILENAMES = _templates(
    "/{ name }-{ target }-v{ version }{ archive-suffix }",
    "/{ name }-{ target }-{ version }{ archive-suffix }",
    "/{ name }-{ version }-{ target }{ archive-suffix }",
    "/{ name }-v{ version }-{ target }{ archive-suffix }",
    "/{ name }_{ target }_v{ version }{ archive-suffix }",
    "/{ name }_{ target }_{ version }{ archive-suffix }",
    "/{ name }_{ version }_{ target }{ archive-suffix }",
    "/{ name }_v{ version }_{ target }{ archive-suffix }",
)

NOVERSION_FILENAMES = _templates(
    "/{ name }-{ target }{ archive-suffix }",
    "/{ name }_{ target }{ archive-suffix }",
)

# %2F is the escaped form of '/'.
GITHUB_RELEASE_PATHS = _templates(
    "{ repo }/releases/download/{ version }",
    "{ repo }/releases/download/v{ version }",
    "{ repo }/releases/download/{ subcrate }%2F{ version }",
    "{ repo }/releases/download/{ subcrate }%2Fv{ version }",
)

GITLAB_RELEASE_PATHS = _templates(
    "{ repo }/-/releases/{ version }/downloads/binaries",
    "{ repo }/-/releases/v{ version }/downloads/binaries",
    "{ repo }/-/releases/{ subcrate }%2F{ version }/downloads/binaries",
    "{ repo }/-/releases/{ subcrate }%2Fv{ version }/downloads/binaries",
)

BITBUCKET_RELEASE_PATHS = _templates("{ repo }/downloads")

SOURCEFORGE_RELEASE_PATHS = _templates(
    "{ repo }/files/binaries/{  version }",
    "{ repo }/files/binaries/v{ version }",
    "{ repo }/files/binaries/{ subcrate }%2F{  version }",
    "{ repo }/files/binaries/{ subcrate }%2Fv{ version }",
)


def url_domain(url: str) -> str | None:
    """Return the domain name of ``url``, or None if it has none or is an IP address."""
    host = urlsplit(url).hostname
    if not host:
        return None
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host
    return None


def apply_filenames_to_paths(
    paths: Sequence[Template],
    filenames: Iterable[Sequence[Template]],
    suffix: str,
) -> list[Template]:
    """Join every filename with every path, filenames varying slowest, then append ``suffix``."""
    return [
        path + filename + suffix
        for filename in chain.from_iterable(filenames)
        for path in paths
    ]


class RepositoryHost(Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    SOURCEFORGE = "sourceforge"
    CODEBERG = "codeberg"
    UNKNOWN = "unknown"

    @classmethod
    def guess_git_hosting_services(cls, url: str) -> RepositoryHost:
        domain = url_domain(url)
        if domain is None:
            return cls.UNKNOWN
        if domain.startswith("github"):
            return cls.GITHUB
        if domain.startswith("gitlab"):
            return cls.GITLAB
        return {
            "bitbucket.org": cls.BITBUCKET,
            "sourceforge.net": cls.SOURCEFORGE,
            "codeberg.org": cls.CODEBERG,
        }.get(domain, cls.UNKNOWN)

    def default_pkg_url_templates(self) -> list[Template] | None:
        """Default package URL templates for this host, or None if it is unknown."""
        both = (FULL_FILENAMES, NOVERSION_FILENAMES)
        match self:
            # Codeberg (Forgejo) has the same release paths as GitHub.
            case RepositoryHost.GITHUB | RepositoryHost.CODEBERG:
                return apply_filenames_to_paths(GITHUB_RELEASE_PATHS, both, "")
            case RepositoryHost.GITLAB:
                return apply_filenames_to_paths(GITLAB_RELEASE_PATHS, both, "")
            case RepositoryHost.BITBUCKET:
                return apply_filenames_to_paths(BITBUCKET_RELEASE_PATHS, (FULL_FILENAMES,), "")
            case RepositoryHost.SOURCEFORGE:
                return apply_filenames_to_paths(SOURCEFORGE_RELEASE_PATHS, both, "/download")
            case _:
                return None