"""Per-project build flags.

Each recognized flag has one option record: a newline-delimited list of the
project ids it applies to, stored at ``<root>/options/<flag>``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..errors import UnrecognizedOption
from .kv import DirectoryStore, validate_key

logger = logging.getLogger(__name__)

OPTIONS_DIR = "options"


class Flag(str, Enum):
    """Build toggles that can be applied to an overridden package."""

    RELAX_DEPENDENCY_BOUNDS = "relax-dependency-bounds"
    SKIP_TESTS = "skip-tests"
    SKIP_DOCS = "skip-docs"

    @classmethod
    def parse(cls, name: str) -> "Flag":
        """Look up a flag by name or by its Nix function alias.

        Raises:
            UnrecognizedOption: If ``name`` is not a known flag.
        """
        key = name.strip()
        try:
            return cls(key)
        except ValueError:
            pass
        if key in _ALIASES:
            return _ALIASES[key]
        raise UnrecognizedOption(name)


# haskell.lib function names the flags correspond to
_ALIASES = {
    "doJailbreak": Flag.RELAX_DEPENDENCY_BOUNDS,
    "dontCheck": Flag.SKIP_TESTS,
    "dontHaddock": Flag.SKIP_DOCS,
}

RECOGNIZED_FLAGS: frozenset[Flag] = frozenset(Flag)


@dataclass
class AddFlagsResult:
    """Outcome of tagging a project with flags."""

    project_id: str
    applied: list[Flag] = field(default_factory=list)
    unrecognized: list[str] = field(default_factory=list)


def _parse_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _render_lines(lines: list[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


class OptionTagStore:
    """Persists the set of projects tagged with each flag."""

    def __init__(self, records: MutableMapping[str, str] | None = None):
        self._records: MutableMapping[str, str] = records if records is not None else {}

    @classmethod
    def at(cls, root: Path | str) -> "OptionTagStore":
        return cls(DirectoryStore(Path(root) / OPTIONS_DIR))

    def _read(self, flag: Flag) -> list[str]:
        return _parse_lines(self._records.get(flag.value, ""))

    def _write(self, flag: Flag, lines: list[str]) -> None:
        self._records[flag.value] = _render_lines(lines)

    def add_flags(self, project_id: str, requested: Iterable[str]) -> AddFlagsResult:
        """Tag ``project_id`` with each recognized flag in ``requested``.

        Unrecognized names are logged and reported, never raised.
        """
        validate_key(project_id)
        result = AddFlagsResult(project_id=project_id)
        for name in requested:
            try:
                flag = Flag.parse(name)
            except UnrecognizedOption as exc:
                logger.warning("%s (ignored for %s)", exc, project_id)
                result.unrecognized.append(name)
                continue
            if flag in result.applied:
                continue
            lines = [line for line in self._read(flag) if line != project_id]
            lines.append(project_id)
            self._write(flag, lines)
            result.applied.append(flag)
            logger.info("Tagged %s with %s", project_id, flag.value)
        return result

    def remove_all_flags(self, project_id: str) -> list[Flag]:
        """Untag ``project_id`` from every flag; returns the flags it had."""
        validate_key(project_id)
        removed = []
        for flag in Flag:
            lines = self._read(flag)
            kept = [line for line in lines if line != project_id]
            if len(kept) != len(lines):
                self._write(flag, kept)
                removed.append(flag)
        return removed

    def list_flag(self, flag: Flag | str) -> set[str]:
        if not isinstance(flag, Flag):
            flag = Flag.parse(flag)
        return set(self._read(flag))

    def flags_for(self, project_id: str) -> list[Flag]:
        """Flags applied to ``project_id``, in declaration order."""
        return [flag for flag in Flag if project_id in self._read(flag)]

    def list_all(self) -> dict[Flag, set[str]]:
        return {flag: set(self._read(flag)) for flag in Flag}
