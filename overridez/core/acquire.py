"""Acquisition of override records from external tools.

The expression generator (``cabal2nix``) and the repository prefetcher
(``nix-prefetch-git``) are run as subprocesses; their output is validated
and handed to the stores.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from ..errors import AcquisitionFailure
from ..storage.options import AddFlagsResult, Flag, OptionTagStore
from ..storage.overrides import OverrideKind, OverrideStore
from ..storage.records import (
    GitDescriptor,
    extract_expression_name,
    parse_github_url,
)
from .resolver import PackageResolver, Resolution

logger = logging.getLogger(__name__)

# name-1.2.3 → ("name", "1.2.3"); hackage names never end in a numeric component
_HACKAGE_TARGET = re.compile(
    r"^(?P<name>[A-Za-z0-9][A-Za-z0-9-]*?)(?:-(?P<version>\d+(?:\.\d+)*))?$"
)

_URL_SCHEMES = ("http://", "https://", "git://", "ssh://", "file://", "cabal://")


def parse_package_target(target: str) -> tuple[str, str]:
    """Split a hackage target into (name, version).

    Examples:
        "beam-core" → ("beam-core", "")
        "beam-core-0.9.0.0" → ("beam-core", "0.9.0.0")

    Raises:
        ValueError: If the target is not a valid package identifier.
    """
    match = _HACKAGE_TARGET.match(target.strip())
    if not match:
        raise ValueError(f"Invalid package target: {target!r}")
    return match.group("name"), match.group("version") or ""


def is_location(target: str) -> bool:
    """True when the target is a URL or a filesystem path, not a package name."""
    return target.startswith(_URL_SCHEMES) or "/" in target or target.startswith(".")


def run_tool(argv: Sequence[str], *, target: str) -> str:
    """Run an external tool and return its stdout.

    Raises:
        AcquisitionFailure: If the tool is missing or exits non-zero.
    """
    logger.info("Running %s", " ".join(argv))
    try:
        proc = subprocess.run(
            list(argv), capture_output=True, text=True, check=False
        )
    except FileNotFoundError as exc:
        raise AcquisitionFailure(target, f"{argv[0]} is not installed") from exc
    except OSError as exc:
        raise AcquisitionFailure(target, f"{argv[0]} could not start: {exc}") from exc
    if proc.returncode != 0:
        detail = proc.stderr.strip().splitlines()[-1:] or ["no output"]
        raise AcquisitionFailure(
            target, f"{argv[0]} exited with status {proc.returncode}: {detail[0]}"
        )
    return proc.stdout


def generate_expression(source: str | Path, *, command: str = "cabal2nix") -> str:
    """Produce a build expression for a package descriptor, URL or path."""
    expression = run_tool([command, str(source)], target=str(source))
    if not expression.strip():
        raise AcquisitionFailure(str(source), f"{command} produced no output")
    return expression


def prefetch_git(
    url: str, rev: str | None = None, *, command: str = "nix-prefetch-git"
) -> GitDescriptor:
    """Fetch repository provenance (url, rev, sha256) for ``url``."""
    argv = [command, url]
    if rev:
        argv.append(rev)
    output = run_tool(argv, target=url)
    try:
        return GitDescriptor.model_validate(json.loads(output))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AcquisitionFailure(url, f"unexpected {command} output: {exc}") from exc


@dataclass
class Acquired:
    """What an acquisition stored."""

    project_id: str
    kind: OverrideKind
    resolution: Resolution | None = None
    flags: AddFlagsResult | None = None
    replaced: list[OverrideKind] = field(default_factory=list)


class Acquirer:
    """Fetches overrides with external tools and saves them to the stores."""

    def __init__(
        self,
        store: OverrideStore,
        options: OptionTagStore,
        resolver: PackageResolver | None = None,
        *,
        expression_generator: str = "cabal2nix",
        git_prefetcher: str = "nix-prefetch-git",
    ):
        self.store = store
        self.options = options
        self.resolver = resolver
        self.expression_generator = expression_generator
        self.git_prefetcher = git_prefetcher

    def _save(
        self,
        kind: OverrideKind,
        project_id: str,
        content: str,
        flags: Iterable[str],
        resolution: Resolution | None = None,
    ) -> Acquired:
        replaced = [k for k in self.store.kinds_for(project_id) if k != kind]
        if replaced:
            logger.warning(
                "%s already has a %s override; both will be composed and the "
                "descriptor override wins",
                project_id,
                ", ".join(k.value for k in replaced),
            )
        self.store.put(kind, project_id, content)
        flag_names = list(flags)
        result = self.options.add_flags(project_id, flag_names) if flag_names else None
        return Acquired(
            project_id=project_id,
            kind=kind,
            resolution=resolution,
            flags=result,
            replaced=replaced,
        )

    def add_package(self, target: str, flags: Iterable[str] = ()) -> Acquired:
        """Save an expression override for a hackage package (``name[-version]``)."""
        try:
            name, version = parse_package_target(target)
        except ValueError as exc:
            raise AcquisitionFailure(target, str(exc)) from exc
        if self.resolver is None:
            raise AcquisitionFailure(target, "no package index configured")
        with self.resolver.resolve(name, version) as descriptor:
            expression = generate_expression(
                descriptor.path, command=self.expression_generator
            )
        return self._save(
            OverrideKind.EXPRESSION, name, expression, flags, descriptor.resolution
        )

    def add_location(self, location: str, flags: Iterable[str] = ()) -> Acquired:
        """Save an expression override generated from a URL or local path."""
        expression = generate_expression(location, command=self.expression_generator)
        project_id = extract_expression_name(expression)
        if not project_id:
            raise AcquisitionFailure(
                location, "could not find the package name in the generated expression"
            )
        return self._save(OverrideKind.EXPRESSION, project_id, expression, flags)

    def add_github(
        self, url: str, rev: str | None = None, flags: Iterable[str] = ()
    ) -> Acquired:
        """Save a descriptor override for a GitHub repository."""
        try:
            _, repo = parse_github_url(url)
        except ValueError as exc:
            raise AcquisitionFailure(url, str(exc)) from exc
        descriptor = prefetch_git(url, rev, command=self.git_prefetcher)
        return self._save(OverrideKind.DESCRIPTOR, repo, descriptor.to_json(), flags)

    def add(
        self,
        target: str,
        *,
        github: bool = False,
        rev: str | None = None,
        flags: Iterable[str] = (),
    ) -> Acquired:
        """Dispatch on the target form: GitHub descriptor, location or package."""
        if github:
            return self.add_github(target, rev, flags)
        if is_location(target):
            return self.add_location(target, flags)
        return self.add_package(target, flags)

    def remove(self, project_id: str) -> tuple[list[OverrideKind], list[Flag]]:
        """Delete every record and option tag for ``project_id``."""
        removed = self.store.delete(project_id)
        untagged = self.options.remove_all_flags(project_id)
        return removed, untagged
