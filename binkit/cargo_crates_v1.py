"""Cargo's ``.crates.toml`` manifest of crates installed with ``cargo install``.

Entries are written here when a crate is installed so that other cargo
tooling can see it.
"""

from __future__ import annotations

import io
import os
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import semver
import tomli_w

from binkit.crate_version_source import CrateInfo, CvsParseError, Source
from binkit.locked_file import cargo_home, create_if_not_exist, open_shared


class CratesTomlParseError(Exception):
    """``.crates.toml`` could not be read, parsed or written."""


def _io_error(exc: OSError) -> CratesTomlParseError:
    return CratesTomlParseError(f"I/O Error: {exc}")


def _parse_error(message: str) -> CratesTomlParseError:
    return CratesTomlParseError(f"Failed to deserialize toml: {message}")


def _read_bytes(reader: IO[Any]) -> bytes:
    try:
        data = reader.read()
    except OSError as exc:
        raise _io_error(exc) from exc
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _parse_entries(document: dict[str, Any]) -> list[tuple[str, list[str]]]:
    if "v1" not in document:
        raise _parse_error("missing field `v1`")
    table = document["v1"]
    if not isinstance(table, dict):
        raise _parse_error(f"`v1` must be a table, got {table!r}")
    entries = []
    for key, bins in table.items():
        if not isinstance(bins, list) or not all(isinstance(name, str) for name in bins):
            raise _parse_error(f"binaries of {key!r} must be a list of strings, got {bins!r}")
        entries.append((key, list(bins)))
    return entries


def _cvs_failure(cvs: CvsParseError) -> CratesTomlParseError:
    return CratesTomlParseError(str(cvs))


@dataclass
class CratesToml:
    """The ``[v1]`` table: ``"name version (source)"`` keys mapped to binary names."""

    v1: list[tuple[str, list[str]]] = field(default_factory=list)

    @classmethod
    def default_path(cls) -> Path:
        return cargo_home() / ".crates.toml"

    @classmethod
    def load(cls) -> CratesToml:
        return cls.load_from_path(cls.default_path())

    @classmethod
    def load_from_reader(cls, reader: IO[Any]) -> CratesToml:
        """Read the manifest from the current position of ``reader``; empty input is an empty manifest."""
        data = _read_bytes(reader)
        if not data:
            return cls()
        try:
            document = tomllib.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise _parse_error(str(exc)) from exc
        return cls(_parse_entries(document))

    @classmethod
    def load_from_path(cls, path: str | os.PathLike[str]) -> CratesToml:
        try:
            file = open_shared(path)
        except OSError as exc:
            raise _io_error(exc) from exc
        with file:
            return cls.load_from_reader(file)

    def remove(self, name: str) -> None:
        self.remove_all([name])

    def remove_all(self, names: Iterable[str]) -> None:
        """Drop entries for the given crate names, and any entry without a name part."""
        doomed = set(names)
        self.v1 = [
            (key, bins)
            for key, bins in self.v1
            if " " in key and key.split(" ", 1)[0] not in doomed
        ]

    def write(self) -> None:
        self.write_to_path(self.default_path())

    def write_to_writer(self, writer: IO[Any]) -> None:
        text = tomli_w.dumps({"v1": {key: list(bins) for key, bins in self.v1}})
        try:
            if isinstance(writer, io.TextIOBase):
                writer.write(text)
            else:
                writer.write(text.encode("utf-8"))
        except OSError as exc:
            raise _io_error(exc) from exc

    def _write_to_file(self, file: IO[bytes]) -> None:
        self.write_to_writer(file)
        try:
            file.truncate(file.tell())
            file.flush()
        except OSError as exc:
            raise _io_error(exc) from exc

    def write_to_path(self, path: str | os.PathLike[str]) -> None:
        try:
            file = create_if_not_exist(path)
        except OSError as exc:
            raise _io_error(exc) from exc
        with file:
            self._write_to_file(file)

    def add_crate(self, metadata: CrateInfo) -> None:
        source = Source.from_crate_source(metadata.source)
        key = f"{metadata.name} {metadata.current_version} ({source})"
        self.v1.append((key, list(metadata.bins)))

    @classmethod
    def append_to_file(cls, file: IO[bytes], crates: Iterable[CrateInfo]) -> None:
        """Replace the entries for ``crates`` in the manifest held by ``file``."""
        crates = list(crates)
        manifest = cls.load_from_reader(file)
        manifest.remove_all(info.name for info in crates)
        for info in crates:
            manifest.add_crate(info)
        try:
            file.seek(0)
        except OSError as exc:
            raise _io_error(exc) from exc
        manifest._write_to_file(file)

    @classmethod
    def append_to_path(cls, path: str | os.PathLike[str], crates: Iterable[CrateInfo]) -> None:
        try:
            file = create_if_not_exist(path)
        except OSError as exc:
            raise _io_error(exc) from exc
        with file:
            cls.append_to_file(file, crates)

    @classmethod
    def append(cls, crates: Iterable[CrateInfo]) -> None:
        cls.append_to_path(cls.default_path(), crates)

    def collect_into_crates_versions(self) -> dict[str, semver.Version]:
        """Map each crate name to its installed version, sorted by name."""
        versions: dict[str, semver.Version] = {}
        for key, _bins in self.v1:
            parts = key.split(" ", 2)
            if len(parts) != 3:
                cvs = CvsParseError("bad CVS format")
                raise _cvs_failure(cvs) from cvs
            name, raw_version, _source = parts
            try:
                version = semver.Version.parse(raw_version)
            except (ValueError, TypeError) as exc:
                cvs = CvsParseError(f"Failed to parse version in cvs: {exc}")
                raise _cvs_failure(cvs) from cvs
            versions[name] = version
        return dict(sorted(versions.items()))