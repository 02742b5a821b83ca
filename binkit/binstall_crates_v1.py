"""The ``crates-v1.json`` manifest of crates installed by this tool.

Other tooling may read it to act on those crates, for example to upgrade or
list them. The file is a series of JSON objects written one after another;
newline-separated JSON is read just as well.
"""

from __future__ import annotations

import functools
import io
import json
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import semver

from binkit.crate_version_source import CrateInfo, CrateSource, SourceType
from binkit.locked_file import cargo_home, create_if_not_exist


class ManifestError(Exception):
    """The manifest could not be read, parsed or written."""


def _io_error(exc: OSError) -> ManifestError:
    return ManifestError(f"I/O Error: {exc}")


def _json_error(message: str) -> ManifestError:
    return ManifestError(f"Failed to parse json: {message}")


_SOURCE_TYPE_NAMES = {kind: kind.name.capitalize() for kind in SourceType}
_SOURCE_TYPES = {name: kind for kind, name in _SOURCE_TYPE_NAMES.items()}
_KNOWN_KEYS = frozenset(
    ("name", "version_req", "current_version", "source", "target", "bins")
)
_JSON_WHITESPACE = " \t\n\r"


def _field(obj: dict[str, Any], key: str, where: str) -> Any:
    try:
        return obj[key]
    except KeyError:
        raise _json_error(f"missing field `{key}` in {where}") from None


def _string(obj: dict[str, Any], key: str, where: str) -> str:
    value = _field(obj, key, where)
    if not isinstance(value, str):
        raise _json_error(f"`{key}` in {where} must be a string, got {value!r}")
    return value


def _source_from_json(obj: Any) -> CrateSource:
    if not isinstance(obj, dict):
        raise _json_error(f"crate source must be an object, got {obj!r}")
    raw_type = _string(obj, "source_type", "crate source")
    source_type = _SOURCE_TYPES.get(raw_type)
    if source_type is None:
        raise _json_error(f"unknown source type {raw_type!r}")
    return CrateSource(source_type, _string(obj, "url", "crate source"))


@functools.total_ordering
@dataclass(eq=False)
class Record:
    """One installed crate, plus any keys written by newer versions of the format.

    Records compare, sort and hash by crate name only.
    """

    crate_info: CrateInfo
    other: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.crate_info.name

    @classmethod
    def from_json(cls, obj: Any) -> Record:
        if not isinstance(obj, dict):
            raise _json_error(f"record must be an object, got {obj!r}")
        raw_version = _string(obj, "current_version", "record")
        try:
            version = semver.Version.parse(raw_version)
        except (ValueError, TypeError) as exc:
            raise _json_error(f"invalid version {raw_version!r}: {exc}") from exc
        bins = _field(obj, "bins", "record")
        if not isinstance(bins, list) or not all(isinstance(b, str) for b in bins):
            raise _json_error(f"`bins` must be a list of strings, got {bins!r}")
        info = CrateInfo(
            name=_string(obj, "name", "record"),
            version_req=_string(obj, "version_req", "record"),
            current_version=version,
            source=_source_from_json(_field(obj, "source", "record")),
            target=_string(obj, "target", "record"),
            bins=list(bins),
        )
        other = {key: value for key, value in obj.items() if key not in _KNOWN_KEYS}
        return cls(info, other)

    def to_json(self) -> dict[str, Any]:
        info = self.crate_info
        obj: dict[str, Any] = {
            "name": info.name,
            "version_req": info.version_req,
            "current_version": str(info.current_version),
            "source": {
                "source_type": _SOURCE_TYPE_NAMES[info.source.source_type],
                "url": info.source.url,
            },
            "target": info.target,
            "bins": list(info.bins),
        }
        obj.update((key, value) for key, value in self.other.items() if key not in obj)
        return obj

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self.name == other.name
        if isinstance(other, CrateInfo):
            return self.name == other.name
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self.name < other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)


def _as_record(item: Record | CrateInfo) -> Record:
    if isinstance(item, Record):
        return item
    if isinstance(item, CrateInfo):
        return Record(item)
    raise TypeError(f"expected a Record or CrateInfo, got {type(item).__name__}")


def _decode_stream(text: str) -> Iterator[Any]:
    decoder = json.JSONDecoder()
    index, end = 0, len(text)
    while True:
        while index < end and text[index] in _JSON_WHITESPACE:
            index += 1
        if index >= end:
            return
        try:
            value, index = decoder.raw_decode(text, index)
        except json.JSONDecodeError as exc:
            raise _json_error(str(exc)) from exc
        yield value


def write_to(file: IO[Any], items: Iterable[Record | CrateInfo]) -> None:
    """Write ``items`` as concatenated JSON objects at the current position of ``file``."""
    text = "".join(
        json.dumps(_as_record(item).to_json(), separators=(",", ":"), ensure_ascii=False)
        for item in items
    )
    try:
        if isinstance(file, io.TextIOBase):
            file.write(text)
        else:
            file.write(text.encode("utf-8"))
        file.flush()
    except OSError as exc:
        raise _io_error(exc) from exc


def append_to_path(path: str | os.PathLike[str], items: Iterable[Record | CrateInfo]) -> None:
    """Append ``items`` to the manifest at ``path``, creating it if needed."""
    try:
        file = create_if_not_exist(path)
    except OSError as exc:
        raise _io_error(exc) from exc
    with file:
        try:
            file.seek(0, os.SEEK_END)
        except OSError as exc:
            raise _io_error(exc) from exc
        write_to(file, items)


def default_path() -> Path:
    """``<cargo home>/binstall/crates-v1.json``; the directory is created if missing."""
    directory = cargo_home() / "binstall"
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise _io_error(exc) from exc
    return directory / "crates-v1.json"


def append(items: Iterable[Record | CrateInfo]) -> None:
    append_to_path(default_path(), items)


class Records:
    """The manifest's records, one per crate name, held with the file locked.

    Later records for the same crate replace earlier ones. The lock is held
    until :meth:`close` or :meth:`overwrite`; use it as a context manager.
    """

    def __init__(self, file: IO[bytes], data: dict[str, Record] | None = None) -> None:
        self._file = file
        self._data: dict[str, Record] = dict(data or {})

    @classmethod
    def load_from_path(cls, path: str | os.PathLike[str]) -> Records:
        try:
            file = create_if_not_exist(path)
        except OSError as exc:
            raise _io_error(exc) from exc
        records = cls(file)
        try:
            records._load()
        except BaseException:
            file.close()
            raise
        return records

    @classmethod
    def load(cls) -> Records:
        return cls.load_from_path(default_path())

    def _load(self) -> None:
        try:
            raw = self._file.read()
        except OSError as exc:
            raise _io_error(exc) from exc
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes | bytearray) else raw
        except UnicodeDecodeError as exc:
            raise _json_error(str(exc)) from exc
        for obj in _decode_stream(text):
            record = Record.from_json(obj)
            self._data[record.name] = record

    def overwrite(self) -> None:
        """Replace the file's contents with these records, then release the lock.

        Everything previously in the file is lost.
        """
        if self._file.closed:
            raise ValueError("records file is already closed")
        try:
            try:
                self._file.seek(0)
            except OSError as exc:
                raise _io_error(exc) from exc
            write_to(self._file, iter(self))
            try:
                self._file.truncate(self._file.tell())
                self._file.flush()
            except OSError as exc:
                raise _io_error(exc) from exc
        finally:
            self._file.close()

    def close(self) -> None:
        """Release the lock without writing anything."""
        self._file.close()

    def __enter__(self) -> Records:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get(self, name: str) -> CrateInfo | None:
        record = self._data.get(name)
        return None if record is None else record.crate_info

    def contains(self, name: str) -> bool:
        return name in self._data

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def insert(self, info: CrateInfo) -> bool:
        """Add ``info`` unless its crate is already present; return whether it was added."""
        if info.name in self._data:
            return False
        self._data[info.name] = Record(info)
        return True

    def replace(self, info: CrateInfo) -> CrateInfo | None:
        """Store ``info`` and return the previous entry for its crate, if any."""
        previous = self._data.get(info.name)
        self._data[info.name] = Record(info)
        return None if previous is None else previous.crate_info

    def remove(self, name: str) -> bool:
        return self._data.pop(name, None) is not None

    def retain(self, predicate: Callable[[CrateInfo], bool]) -> None:
        """Keep only the crates for which ``predicate`` is true."""
        self._data = {
            name: record for name, record in self._data.items() if predicate(record.crate_info)
        }

    def take(self, name: str) -> CrateInfo | None:
        record = self._data.pop(name, None)
        return None if record is None else record.crate_info

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Record]:
        """Records in order of crate name."""
        return iter(sorted(self._data.values()))