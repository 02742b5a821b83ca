"""Installed crate records and the ``name version (source)`` strings cargo keeps for them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from urllib.parse import urlsplit, urlunsplit

import semver

CRATES_IO_INDEX = "https://github.com/rust-lang/crates.io-index"

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*\Z")
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})


class CvsParseError(ValueError):
    """A ``name version (source)`` string could not be parsed."""


class SourceType(IntEnum):
    GIT = 0
    PATH = 1
    REGISTRY = 2
    SPARSE = 3

    @property
    def prefix(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class CrateSource:
    source_type: SourceType
    url: str

    @classmethod
    def cratesio_registry(cls) -> CrateSource:
        return cls(SourceType.REGISTRY, CRATES_IO_INDEX)


@dataclass
class CrateInfo:
    """What is recorded about one installed crate."""

    name: str
    version_req: str
    current_version: semver.Version
    source: CrateSource
    target: str
    bins: list[str] = field(default_factory=list)


def _parse_url(text: str) -> str:
    parts = urlsplit(text)
    if not parts.scheme or not _SCHEME.match(parts.scheme):
        raise ValueError(f"relative URL without a base: {text!r}")
    if parts.scheme in _SPECIAL_SCHEMES:
        if not parts.hostname:
            raise ValueError(f"empty host in {text!r}")
        return urlunsplit(
            (parts.scheme, parts.netloc, parts.path or "/", parts.query, parts.fragment)
        )
    return text


@dataclass(frozen=True, order=True)
class Source:
    kind: SourceType
    url: str

    @classmethod
    def from_crate_source(cls, source: CrateSource) -> Source:
        return cls(source.source_type, source.url)

    def __str__(self) -> str:
        text = f"{self.kind.prefix}+{self.url}"
        if self.kind is SourceType.SPARSE and not self.url.endswith("/"):
            text += "/"
        return text


_PARSEABLE_KINDS = {
    "git": SourceType.GIT,
    "path": SourceType.PATH,
    "registry": SourceType.REGISTRY,
}


@dataclass(frozen=True, order=True)
class CrateVersionSource:
    name: str
    version: semver.Version
    source: Source

    @classmethod
    def parse(cls, text: str) -> CrateVersionSource:
        parts = text.split(" ", 2)
        if len(parts) != 3:
            raise CvsParseError("bad CVS format")
        name, raw_version, raw_source = parts
        try:
            version = semver.Version.parse(raw_version)
        except (ValueError, TypeError) as exc:
            raise CvsParseError(f"Failed to parse version in cvs: {exc}") from exc

        kind_and_url = raw_source.strip("()").split("+", 1)
        if len(kind_and_url) != 2:
            raise CvsParseError("bad source format")
        kind, arg = kind_and_url
        source_type = _PARSEABLE_KINDS.get(kind)
        if source_type is None:
            raise CvsParseError(f"unknown source type {kind}+{arg}")
        try:
            url = _parse_url(arg)
        except ValueError as exc:
            raise CvsParseError(f"Failed to parse url in cvs: {exc}") from exc
        return cls(name, version, Source(source_type, url))

    @classmethod
    def from_crate_info(cls, info: CrateInfo) -> CrateVersionSource:
        return cls(info.name, info.current_version, Source.from_crate_source(info.source))

    def __str__(self) -> str:
        return f"{self.name} {self.version} ({self.source})"