"""Two-format override store.

Expression records and descriptor records live in separate directories under
the store root, one file per project:

    <root>/expr-overrides/<project>.nix
    <root>/descriptor-overrides/<project>.json

Writes are last-writer-wins; there is no cross-process locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, MutableMapping
from enum import Enum
from pathlib import Path

from ..errors import StoreIOError
from .kv import DirectoryStore, validate_key

logger = logging.getLogger(__name__)


class OverrideKind(str, Enum):
    """The two record formats, in composition order."""

    EXPRESSION = "expression"
    DESCRIPTOR = "descriptor"

    @property
    def directory(self) -> str:
        return _KIND_DIRS[self]

    @property
    def suffix(self) -> str:
        return _KIND_SUFFIXES[self]


_KIND_DIRS = {
    OverrideKind.EXPRESSION: "expr-overrides",
    OverrideKind.DESCRIPTOR: "descriptor-overrides",
}

_KIND_SUFFIXES = {
    OverrideKind.EXPRESSION: ".nix",
    OverrideKind.DESCRIPTOR: ".json",
}

# Fixed scan order; later kinds win on key collision
KIND_ORDER = (OverrideKind.EXPRESSION, OverrideKind.DESCRIPTOR)

DiscoveryObserver = Callable[[OverrideKind, str], None]
ReadErrorHandler = Callable[[str, StoreIOError], None]


def log_discovery(kind: OverrideKind, project_id: str) -> None:
    """Default discovery observer: trace each record as it is found."""
    logger.debug("found override (%s): %s", kind.value, project_id)


class OverrideStore:
    """Persists and enumerates override records of both kinds.

    Each kind is backed by its own ``MutableMapping[str, str]``. Use
    :meth:`at` for the directory-backed store; pass dicts for an in-memory
    store.
    """

    def __init__(
        self,
        records: Mapping[OverrideKind, MutableMapping[str, str]] | None = None,
        *,
        on_discover: DiscoveryObserver | None = log_discovery,
    ):
        records = records or {}
        self._records: dict[OverrideKind, MutableMapping[str, str]] = {
            kind: records.get(kind, {}) for kind in KIND_ORDER
        }
        self.on_discover = on_discover

    @classmethod
    def at(
        cls,
        root: Path | str,
        *,
        on_discover: DiscoveryObserver | None = log_discovery,
    ) -> "OverrideStore":
        root = Path(root)
        return cls(
            {
                kind: DirectoryStore(root / kind.directory, kind.suffix)
                for kind in KIND_ORDER
            },
            on_discover=on_discover,
        )

    def put(self, kind: OverrideKind, project_id: str, content: str) -> None:
        """Save a record, replacing any previous record of the same kind."""
        validate_key(project_id)
        self._records[kind][project_id] = content
        logger.info("Saved %s override for %s", kind.value, project_id)

    def get(self, kind: OverrideKind, project_id: str) -> str | None:
        return self._records[kind].get(project_id)

    def kinds_for(self, project_id: str) -> list[OverrideKind]:
        """Return the kinds that currently hold a record for ``project_id``."""
        return [kind for kind in KIND_ORDER if project_id in self._records[kind]]

    def delete(self, project_id: str) -> list[OverrideKind]:
        """Remove every record for ``project_id``.

        Returns:
            The kinds that had a record removed (empty if none existed).
        """
        validate_key(project_id)
        removed = []
        for kind in KIND_ORDER:
            records = self._records[kind]
            if project_id in records:
                del records[project_id]
                removed.append(kind)
                logger.info("Deleted %s override for %s", kind.value, project_id)
        return removed

    def list_all(
        self,
        kind: OverrideKind,
        *,
        on_error: ReadErrorHandler | None = None,
    ) -> Iterator[tuple[str, str]]:
        """Yield (project_id, content) pairs for one kind.

        Reads the backing mapping afresh on each call. Records removed between
        listing and reading are skipped. A record that cannot be read raises
        StoreIOError, unless ``on_error`` is given: then it is passed the
        project id and the error, and the scan continues.
        """
        records = self._records[kind]
        for project_id in list(records):
            try:
                content = records.get(project_id)
            except StoreIOError as exc:
                if on_error is None:
                    raise
                on_error(project_id, exc)
                continue
            if content is None:
                continue
            if self.on_discover is not None:
                self.on_discover(kind, project_id)
            yield project_id, content

    def project_ids(self) -> list[str]:
        """All project ids with at least one record, sorted."""
        ids: set[str] = set()
        for kind in KIND_ORDER:
            ids.update(self._records[kind])
        return sorted(ids)
