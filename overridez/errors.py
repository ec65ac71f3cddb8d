"""Error taxonomy for overridez.

Every error carries the identifier (project, flag or package) it concerns so
the CLI can print a diagnostic without inspecting the traceback.
"""

from __future__ import annotations

from dataclasses import dataclass


class OverridezError(Exception):
    """Base class for all overridez errors."""


class PackageNotFound(OverridezError):
    """No archive entry matches the requested package/version."""

    def __init__(self, name: str, version: str = ""):
        self.name = name
        self.version = version
        target = f"{name}-{version}" if version else name
        super().__init__(f"Package not found in index: {target}")


class MalformedRecord(OverridezError):
    """A stored override record cannot be parsed."""

    def __init__(self, project_id: str, reason: str):
        self.project_id = project_id
        self.reason = reason
        super().__init__(f"Malformed override record for {project_id}: {reason}")


class UnrecognizedOption(OverridezError):
    """A flag name outside the closed set of recognized flags."""

    def __init__(self, flag_name: str):
        self.flag_name = flag_name
        super().__init__(f"Unrecognized option: {flag_name}")


class StoreIOError(OverridezError):
    """Filesystem failure while reading or writing a record."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Store I/O failed for {key}: {reason}")


class AcquisitionFailure(OverridezError):
    """An external fetch or generator tool failed."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Could not acquire {target}: {reason}")


@dataclass(frozen=True)
class RecordFailure:
    """One project's failed contribution to a composition."""

    kind: str
    project_id: str
    reason: str

    def __str__(self) -> str:
        return f"{self.project_id} ({self.kind}): {self.reason}"


class CompositionError(OverridezError):
    """Raised when a composition carries per-project failures."""

    def __init__(self, failures: list[RecordFailure]):
        self.failures = list(failures)
        lines = "\n".join(f"  - {f}" for f in self.failures)
        super().__init__(
            f"{len(self.failures)} override record(s) could not be used:\n{lines}"
        )
