"""Cargo's ``config.toml``, read so that installs honour the user's cargo settings."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from binkit.locked_file import cargo_home, open_shared


class ConfigLoadError(Exception):
    """The cargo configuration could not be read or parsed."""


def _io_error(exc: OSError) -> ConfigLoadError:
    return ConfigLoadError(f"I/O Error: {exc}")


def _parse_error(message: str) -> ConfigLoadError:
    return ConfigLoadError(f"Failed to deserialize toml: {message}")


@dataclass(frozen=True)
class Install:
    #: ``cargo install`` destination directory.
    root: Path | None = None


@dataclass(frozen=True)
class Http:
    #: HTTP proxy in libcurl format, ``host:port``.
    proxy: str | None = None
    #: Timeout for each HTTP request, in seconds.
    timeout: int | None = None
    #: Path to a certificate authority bundle.
    cainfo: Path | None = None


@dataclass(frozen=True)
class EnvValue:
    value: str


@dataclass(frozen=True)
class EnvWithOptions:
    value: str
    force: bool | None = None
    relative: bool | None = None


@dataclass(frozen=True)
class Registry:
    index: str | None = None


@dataclass(frozen=True)
class DefaultRegistry:
    default: str | None = None


def _table(parent: dict[str, Any], key: str, where: str) -> dict[str, Any] | None:
    value = parent.get(key)
    if value is None or isinstance(value, dict):
        return value
    raise _parse_error(f"`{where}{key}` must be a table, got {value!r}")


def _opt_str(table: dict[str, Any], key: str, where: str) -> str | None:
    value = table.get(key)
    if value is None or isinstance(value, str):
        return value
    raise _parse_error(f"`{where}.{key}` must be a string, got {value!r}")


def _opt_bool(table: dict[str, Any], key: str, where: str) -> bool | None:
    value = table.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise _parse_error(f"`{where}.{key}` must be a boolean, got {value!r}")


def _opt_u64(table: dict[str, Any], key: str, where: str) -> int | None:
    value = table.get(key)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 2**64:
        return value
    raise _parse_error(f"`{where}.{key}` must be a non-negative integer, got {value!r}")


def _opt_path(table: dict[str, Any], key: str, where: str, directory: Path) -> Path | None:
    raw = _opt_str(table, key, where)
    if raw is None:
        return None
    path = Path(raw)
    return path if path.is_absolute() else directory / path


def _env(name: str, raw: Any, directory: Path) -> EnvValue | EnvWithOptions:
    if isinstance(raw, str):
        return EnvValue(raw)
    if isinstance(raw, dict) and isinstance(raw.get("value"), str):
        where = f"env.{name}"
        force = _opt_bool(raw, "force", where)
        relative = _opt_bool(raw, "relative", where)
        value = raw["value"]
        if relative is True and not Path(value).is_absolute():
            value = str(directory / value)
        return EnvWithOptions(value, force, relative)
    raise _parse_error(f"data did not match any variant of untagged enum Env for `env.{name}`")


@dataclass(frozen=True)
class Config:
    install: Install | None = None
    http: Http | None = None
    env: dict[str, EnvValue | EnvWithOptions] | None = None
    registries: dict[str, Registry] | None = None
    registry: DefaultRegistry | None = None

    @classmethod
    def default_path(cls) -> Path:
        return cargo_home() / "config.toml"

    @classmethod
    def load(cls) -> Config:
        return cls.load_from_path(cls.default_path())

    @classmethod
    def load_from_reader(cls, reader: IO[Any], directory: str | os.PathLike[str]) -> Config:
        """Parse a configuration; relative paths in it are joined onto ``directory``."""
        directory = Path(directory)
        try:
            data = reader.read()
        except OSError as exc:
            raise _io_error(exc) from exc
        if isinstance(data, bytes | bytearray):
            if not data:
                return cls()
            try:
                data = bytes(data).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise _parse_error(str(exc)) from exc
        elif not data:
            return cls()
        try:
            document = tomllib.loads(data)
        except tomllib.TOMLDecodeError as exc:
            raise _parse_error(str(exc)) from exc
        return cls._from_document(document, directory)

    @classmethod
    def _from_document(cls, document: dict[str, Any], directory: Path) -> Config:
        install = http = registry = None
        env = registries = None

        if (table := _table(document, "install", "")) is not None:
            install = Install(_opt_path(table, "root", "install", directory))
        if (table := _table(document, "http", "")) is not None:
            http = Http(
                proxy=_opt_str(table, "proxy", "http"),
                timeout=_opt_u64(table, "timeout", "http"),
                cainfo=_opt_path(table, "cainfo", "http", directory),
            )
        if (table := _table(document, "env", "")) is not None:
            env = {
                name: _env(name, raw, directory) for name, raw in sorted(table.items())
            }
        if (table := _table(document, "registries", "")) is not None:
            registries = {}
            for name in sorted(table):
                entry = _table(table, name, "registries.")
                registries[name] = Registry(
                    _opt_str(entry or {}, "index", f"registries.{name}")
                )
        if (table := _table(document, "registry", "")) is not None:
            registry = DefaultRegistry(_opt_str(table, "default", "registry"))

        return cls(install, http, env, registries, registry)

    @classmethod
    def load_from_path(cls, path: str | os.PathLike[str]) -> Config:
        """Load the configuration at ``path``; a missing file gives the default configuration."""
        try:
            file = open_shared(path)
        except FileNotFoundError:
            return cls()
        except OSError as exc:
            raise _io_error(exc) from exc
        with file:
            return cls.load_from_reader(file, Path(path).parent)