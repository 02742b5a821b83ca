"""Data shared by package fetchers: errors, signature policy and repository info."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from urllib.parse import urlsplit, urlunsplit

from binkit.hosting import RepositoryHost

DEFAULT_GH_API_RETRY_DURATION = timedelta(seconds=1)


class FetchError(Exception):
    """Base class for errors raised while finding or fetching a package."""


class InvalidPkgFmtError(FetchError):
    """The package format cannot be worked out from the crate's metadata."""

    def __init__(
        self,
        crate_name: str,
        version: str,
        target: str,
        pkg_url: str,
        reason: str,
    ) -> None:
        super().__init__(
            f"Invalid pkg-url {pkg_url} for {crate_name}@{version} on {target}: {reason}"
        )
        self.crate_name = crate_name
        self.version = version
        self.target = target
        self.pkg_url = pkg_url
        self.reason = reason


class MissingSignatureError(FetchError):
    def __init__(self) -> None:
        super().__init__("No signature present")


class InvalidSignatureError(FetchError):
    def __init__(self) -> None:
        super().__init__("Failed to verify signature")


class SignaturePolicy(Enum):
    """What to do about package signatures."""

    #: Don't process any signing information at all.
    IGNORE = "ignore"
    #: Verify and fail if a signature is found, but pass a signature-less package.
    IF_PRESENT = "if-present"
    #: Require signatures to be present and valid.
    REQUIRE = "require"


@dataclass(frozen=True)
class Data:
    """Data required to fetch a package."""

    name: str
    version: str
    repo: str | None = None


@dataclass(frozen=True)
class RepoInfo:
    """A resolved repository and what is known about it."""

    repo: str
    repository_host: RepositoryHost
    subcrate: str | None = None
    is_private: bool = False


_SUBCRATE_SEPARATORS: dict[RepositoryHost, tuple[str, ...]] = {
    RepositoryHost.GITHUB: ("tree",),
    RepositoryHost.GITLAB: ("-", "blob"),
    RepositoryHost.CODEBERG: ("src", "branch"),
}


def detect_subcrate(url: str, repository_host: RepositoryHost) -> tuple[str, str | None]:
    """Split a subcrate path off a repository URL.

    Returns ``(repo_url, subcrate)``. When ``url`` points at a subcrate inside a
    repository, ``repo_url`` is reduced to ``scheme://host/{owner}/{name}``;
    otherwise ``url`` is returned unchanged with ``None``.
    """
    separators = _SUBCRATE_SEPARATORS.get(repository_host)
    if separators is None:
        return url, None

    parts = urlsplit(url)
    if not parts.path.startswith("/"):
        return url, None
    segments = parts.path[1:].split("/")

    # owner, name, *separators, branch, then the subcrate path
    head = 2 + len(separators) + 1
    if len(segments) <= head:
        return url, None
    if tuple(segments[2 : 2 + len(separators)]) != separators:
        return url, None

    match segments[head:]:
        case ["crates", subcrate]:
            pass
        case [subcrate] if subcrate != "crates":
            pass
        case _:
            return url, None

    path = "/" + "/".join(segments[:2])
    repo = urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
    return repo, subcrate