"""Package-version resolution against a package index archive.

The index is a tar archive (hackage's ``01-index.tar``) whose members embed
``<name>/<version>/<name>.cabal``. Resolution picks one matching member and
extracts only its ``.cabal`` file into a temporary directory that lives for
the duration of a ``with`` block.

When no version is requested the *last* match in archive order is taken.
Archive order is storage order, not version order, so the selection is a
valid match but not necessarily the newest release.
"""

from __future__ import annotations

import logging
import tarfile
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..errors import AcquisitionFailure, PackageNotFound

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".cabal"

AdvisoryCallback = Callable[[str], None]


@dataclass(frozen=True)
class Resolution:
    """The archive member selected for a package request."""

    name: str
    version: str
    member: str
    pinned: bool
    advisory: str | None = None


@dataclass(frozen=True)
class ResolvedDescriptor:
    """An extracted package descriptor; ``path`` is valid inside the ``with``."""

    path: Path
    resolution: Resolution


def search_prefix(name: str, version: str = "") -> str:
    if version:
        return f"/{name}/{version}/"
    return f"/{name}/"


def matches(member_name: str, name: str, version: str = "") -> bool:
    """Check whether an archive member is the descriptor for name[/version]."""
    path = "/" + member_name.lstrip("/")
    return search_prefix(name, version) in path and path.endswith(
        f"/{name}{DESCRIPTOR_SUFFIX}"
    )


def _version_of(member_name: str) -> str:
    parts = PurePosixPath(member_name).parts
    return parts[-2] if len(parts) >= 2 else ""


class PackageResolver:
    """Selects a package descriptor from an index archive.

    Example:
        resolver = PackageResolver("~/.cabal/packages/hackage.haskell.org/01-index.tar")
        with resolver.resolve("beam-core", "0.9.0.0") as descriptor:
            expression = generate_expression(descriptor.path)
    """

    def __init__(
        self,
        index_path: Path | str,
        *,
        on_advisory: AdvisoryCallback | None = None,
    ):
        self.index_path = Path(index_path).expanduser()
        self.on_advisory = on_advisory

    def _open(self) -> tarfile.TarFile:
        try:
            return tarfile.open(self.index_path, mode="r:*")
        except FileNotFoundError as exc:
            raise AcquisitionFailure(
                str(self.index_path), "package index not found"
            ) from exc
        except (tarfile.TarError, OSError) as exc:
            raise AcquisitionFailure(str(self.index_path), str(exc)) from exc

    def _select(
        self, archive: tarfile.TarFile, name: str, version: str
    ) -> tarfile.TarInfo:
        selected = None
        count = 0
        try:
            for member in archive:
                if member.isfile() and matches(member.name, name, version):
                    selected = member
                    count += 1
        except (tarfile.TarError, OSError) as exc:
            raise AcquisitionFailure(str(self.index_path), str(exc)) from exc
        if selected is None:
            raise PackageNotFound(name, version)
        logger.debug(
            "%d candidate(s) for %s, selected %s", count, name, selected.name
        )
        return selected

    def _resolution(self, name: str, version: str, member: str) -> Resolution:
        selected_version = _version_of(member)
        advisory = None
        if not version:
            advisory = (
                f"No version given for {name}; using {name}-{selected_version}. "
                "Pin a version for reproducible results."
            )
            logger.warning("%s", advisory)
            if self.on_advisory is not None:
                self.on_advisory(advisory)
        return Resolution(
            name=name,
            version=selected_version,
            member=member,
            pinned=bool(version),
            advisory=advisory,
        )

    def find(self, name: str, version: str = "") -> Resolution:
        """Select the archive member for ``name`` without extracting it.

        Raises:
            PackageNotFound: If no member matches.
            AcquisitionFailure: If the archive cannot be read.
        """
        with self._open() as archive:
            member = self._select(archive, name, version)
        return self._resolution(name, version, member.name)

    @contextmanager
    def resolve(self, name: str, version: str = "") -> Iterator[ResolvedDescriptor]:
        """Extract the selected descriptor into a temporary directory.

        The directory is created only once a member has been selected and is
        removed when the ``with`` block exits, however it exits.

        Raises:
            PackageNotFound: If no member matches.
            AcquisitionFailure: If the archive cannot be read.
        """
        with self._open() as archive:
            member = self._select(archive, name, version)
            try:
                handle = archive.extractfile(member)
                if handle is None:
                    raise AcquisitionFailure(member.name, "member is not a file")
                with handle:
                    data = handle.read()
            except (tarfile.TarError, OSError) as exc:
                raise AcquisitionFailure(member.name, str(exc)) from exc

        resolution = self._resolution(name, version, member.name)
        with tempfile.TemporaryDirectory(prefix="overridez-") as tmp:
            path = Path(tmp) / f"{name}{DESCRIPTOR_SUFFIX}"
            try:
                path.write_bytes(data)
            except OSError as exc:
                raise AcquisitionFailure(member.name, str(exc)) from exc
            logger.debug("Extracted %s to %s", member.name, path)
            yield ResolvedDescriptor(path=path, resolution=resolution)
