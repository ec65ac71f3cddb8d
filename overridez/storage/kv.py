"""Directory-backed key-value adapter.

A ``DirectoryStore`` exposes one directory as a ``MutableMapping[str, str]``:
each key is a file stem, each value is the file's text. The directory is
scanned on every iteration, so the mapping never serves a stale snapshot.
A plain ``dict`` satisfies the same interface and is used as the in-memory
fake in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, MutableMapping
from pathlib import Path

from ..errors import StoreIOError

logger = logging.getLogger(__name__)


def validate_key(key: str) -> str:
    """Return ``key`` if it is usable as a file stem and as one line of text.

    Raises:
        ValueError: If the key is empty, hidden, or contains a path
            separator, whitespace or a non-printable character.
    """
    if not key or key.startswith(".") or "/" in key or "\\" in key:
        raise ValueError(f"Invalid project identifier: {key!r}")
    if any(ch.isspace() or not ch.isprintable() for ch in key):
        raise ValueError(f"Invalid project identifier: {key!r}")
    return key


class DirectoryStore(MutableMapping[str, str]):
    """Mapping of file stem to file content inside one directory."""

    def __init__(self, root: Path | str, suffix: str = ""):
        self.root = Path(root)
        self.suffix = suffix

    def __repr__(self) -> str:
        return f"DirectoryStore({str(self.root)!r}, suffix={self.suffix!r})"

    def path_for(self, key: str) -> Path:
        return self.root / f"{validate_key(key)}{self.suffix}"

    def __getitem__(self, key: str) -> str:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise KeyError(key) from None
        except UnicodeDecodeError as exc:
            raise StoreIOError(
                str(path), f"not valid UTF-8 text ({exc.reason})"
            ) from exc
        except OSError as exc:
            raise StoreIOError(str(path), str(exc)) from exc

    def __setitem__(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(value, encoding="utf-8")
        except OSError as exc:
            raise StoreIOError(str(path), str(exc)) from exc
        logger.debug("Wrote %s", path)

    def __delitem__(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise KeyError(key) from None
        except OSError as exc:
            raise StoreIOError(str(path), str(exc)) from exc
        logger.debug("Removed %s", path)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        try:
            return self.path_for(key).is_file()
        except ValueError:
            return False

    def __iter__(self) -> Iterator[str]:
        if not self.root.is_dir():
            return iter(())
        try:
            names = [
                entry.name
                for entry in self.root.iterdir()
                if entry.is_file() and not entry.name.startswith(".")
            ]
        except OSError as exc:
            raise StoreIOError(str(self.root), str(exc)) from exc
        if self.suffix:
            names = [
                name[: -len(self.suffix)]
                for name in names
                if name.endswith(self.suffix) and len(name) > len(self.suffix)
            ]
        keys = []
        for name in names:
            try:
                keys.append(validate_key(name))
            except ValueError:
                logger.warning(
                    "Ignoring %s: not a valid project identifier",
                    self.root / f"{name}{self.suffix}",
                )
        # Sorted by key so scans are reproducible across filesystems
        return iter(sorted(keys))

    def __len__(self) -> int:
        return sum(1 for _ in self)
