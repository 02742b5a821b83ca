"""Values available to package URL templates, and rendering of those templates into URLs."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from binkit.fetch_data import Data, FetchError
from binkit.template import Template

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*\Z")
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})


def _parse_url(text: str) -> str:
    """Check that ``text`` is an absolute URL and return it in normal form."""
    text = text.strip(" \t\n\r\f\v\x00")
    parts = urlsplit(text)
    if not parts.scheme or not _SCHEME.match(parts.scheme):
        raise FetchError(f"Failed to parse url: relative URL without a base: {text!r}")
    scheme = parts.scheme.lower()
    if scheme in _SPECIAL_SCHEMES:
        if scheme != "file" and not parts.hostname:
            raise FetchError(f"Failed to parse url: empty host in {text!r}")
        try:
            parts.port
        except ValueError as exc:
            raise FetchError(f"Failed to parse url: {exc}") from exc
        netloc = parts.netloc
        if parts.hostname:
            netloc = netloc.replace(parts.hostname, parts.hostname.lower(), 1)
        return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))
    return text


def _related_value(info: Any, key: str) -> str | None:
    if info is None:
        return None
    getter = getattr(info, "get_value", None)
    if callable(getter):
        return getter(key)
    if isinstance(info, Mapping):
        return info.get(key)
    if callable(info):
        return info(key)
    raise TypeError(f"cannot look up target information in {type(info).__name__}")


@dataclass
class Context:
    """The keys a package URL template may refer to."""

    name: str
    repo: str | None
    target: str
    version: str
    #: Archive format, e.g. ``tar.gz`` or ``zip``.
    archive_format: str | None
    archive_suffix: str | None
    #: Filename extension of the binary: ``.exe`` on Windows, empty otherwise.
    binary_ext: str
    #: Directory of the crate inside the repository.
    subcrate: str | None
    #: URL of the file being downloaded; only used for signature file templates.
    url: str | None = None
    target_related_info: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_data_with_repo(
        cls,
        data: Data,
        target: str,
        target_related_info: Any,
        archive_suffix: str | None,
        repo: str | None,
        subcrate: str | None,
    ) -> Context:
        if archive_suffix is None:
            archive_format = None
        elif archive_suffix == "":
            # An empty suffix means a bare binary.
            archive_format = "bin"
        else:
            if not archive_suffix.startswith("."):
                raise ValueError(f"archive suffix must start with '.': {archive_suffix!r}")
            archive_format = archive_suffix[1:]

        return cls(
            name=data.name,
            repo=repo,
            target=target,
            version=data.version,
            archive_format=archive_format,
            archive_suffix=archive_suffix,
            binary_ext=".exe" if "windows" in target else "",
            subcrate=subcrate,
            url=None,
            target_related_info=target_related_info,
        )

    def with_url(self, url: str) -> Context:
        """Set the URL of the file being downloaded and return this context."""
        self.url = url
        return self

    def get_value(self, key: str) -> str | None:
        match key:
            case "name":
                return self.name
            case "repo":
                return self.repo
            case "target":
                return self.target
            case "version":
                return self.version
            # "format" is a soft-deprecated alias for "archive-format".
            case "archive-format" | "format":
                return self.archive_format
            case "archive-suffix":
                return self.archive_suffix
            case "binary-ext":
                return self.binary_ext
            case "subcrate":
                return self.subcrate
            case "url":
                return self.url
            case _:
                return _related_value(self.target_related_info, key)

    def render_url_with(self, template: Template) -> str:
        """Render ``template`` with this context and check the result is a URL."""
        logger.debug("render url template %s with %r", template, self)
        return _parse_url(template.render(self))

    def render_url(self, template: str) -> str:
        return self.render_url_with(Template.parse(template))