"""Both install manifests, ``.crates.toml`` and ``crates-v1.json``, kept in step."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO, Iterable

import semver

from binkit.binstall_crates_v1 import ManifestError, Records
from binkit.cargo_crates_v1 import CratesToml, CratesTomlParseError
from binkit.crate_version_source import CrateInfo
from binkit.locked_file import create_if_not_exist


class ManifestsError(Exception):
    """One of the install manifests could not be read or written."""


def _wrap(exc: Exception) -> ManifestsError:
    if isinstance(exc, ManifestError):
        return ManifestsError(f"failed to parse binstall crates-v1 manifest: {exc}")
    if isinstance(exc, CratesTomlParseError):
        return ManifestsError(f"failed to parse cargo v1 manifest: {exc}")
    return ManifestsError(f"I/O error: {exc}")


_WRAPPED = (ManifestError, CratesTomlParseError, OSError)


class Manifests:
    """Both manifests under ``cargo_roots``, opened with exclusive locks.

    The locks are held until :meth:`update` or :meth:`close`.
    """

    def __init__(
        self,
        binstall: Records,
        cargo_crates_v1: BinaryIO,
        installed_crates: dict[str, semver.Version],
    ) -> None:
        self._binstall = binstall
        self._cargo_crates_v1 = cargo_crates_v1
        self._installed_crates = installed_crates

    @classmethod
    def open_exclusive(cls, cargo_roots: str | os.PathLike[str]) -> Manifests:
        roots = Path(cargo_roots)
        metadata_path = roots / "binstall" / "crates-v1.json"
        try:
            metadata_path.parent.mkdir(parents=True, exist_ok=True)
            binstall = Records.load_from_path(metadata_path)
        except _WRAPPED as exc:
            raise _wrap(exc) from exc

        try:
            try:
                crates_file = create_if_not_exist(roots / ".crates.toml")
            except OSError as exc:
                raise _wrap(exc) from exc
            try:
                installed = CratesToml.load_from_reader(crates_file).collect_into_crates_versions()
            except _WRAPPED as exc:
                crates_file.close()
                raise _wrap(exc) from exc
        except BaseException:
            binstall.close()
            raise

        binstall.retain(lambda info: info.name in installed)
        return cls(binstall, crates_file, installed)

    def installed_crates(self) -> dict[str, semver.Version]:
        """Installed crates and their versions, as recorded in ``.crates.toml``.

        Crates may be uninstalled with tools that only update ``.crates.toml``,
        so that file is the one trusted here.
        """
        return self._installed_crates

    def update(self, metadata: Iterable[CrateInfo]) -> None:
        """Record ``metadata`` in both manifests, then release the locks."""
        metadata = list(metadata)
        try:
            try:
                self._cargo_crates_v1.seek(0)
                CratesToml.append_to_file(self._cargo_crates_v1, metadata)
            except _WRAPPED as exc:
                raise _wrap(exc) from exc
            for info in metadata:
                self._binstall.replace(info)
            try:
                self._binstall.overwrite()
            except _WRAPPED as exc:
                raise _wrap(exc) from exc
        finally:
            self.close()

    def close(self) -> None:
        """Release both locks without writing anything."""
        self._cargo_crates_v1.close()
        self._binstall.close()

    def __enter__(self) -> Manifests:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()