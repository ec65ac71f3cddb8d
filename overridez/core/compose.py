"""Composition of stored overrides into one override function.

An override is a function ``(self, super) -> dict[project_id, derivation]``:
``self`` is the final package set (the build pipeline's builder) and ``super``
the package set before the override is applied. Stored records become one
``PartialOverride`` each; partials are kept as an ordered tuple and folded
with :func:`layer`, which gives later partials both visibility of and
precedence over earlier ones:

    layer(f, g)(self, super) = f(self, super) ∪ g(self, super ∪ f(self, super))

Scan order is fixed: expression records, then descriptor records, then
option tags. Within a kind, records are taken in project-id order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Protocol

from ..errors import CompositionError, MalformedRecord, RecordFailure, StoreIOError
from ..storage.options import Flag, OptionTagStore
from ..storage.overrides import KIND_ORDER, OverrideKind, OverrideStore
from ..storage.records import GitDescriptor, GithubSource

logger = logging.getLogger(__name__)

OPTION_KIND = "option"


class PackageBuilder(Protocol):
    """The build pipeline's side of an override (``self``)."""

    def call_expression(self, project_id: str, expression: str) -> Any: ...

    def call_source(self, project_id: str, source: GithubSource) -> Any: ...

    def apply_flag(self, flag: Flag, derivation: Any) -> Any: ...


Override = Callable[[Any, Mapping[str, Any]], dict[str, Any]]


def identity(self_: Any, super_: Mapping[str, Any]) -> dict[str, Any]:
    """The override that adds nothing."""
    return {}


def layer(first: Override, second: Override) -> Override:
    """Sequentially layer two overrides; ``second`` wins on collisions."""

    def layered(self_: Any, super_: Mapping[str, Any]) -> dict[str, Any]:
        produced = first(self_, super_)
        later = second(self_, {**super_, **produced})
        return {**produced, **later}

    return layered


@dataclass(frozen=True)
class PartialOverride:
    """An override contributing exactly one project."""

    kind: str
    project_id: str
    build: Callable[[Any, Mapping[str, Any]], Any]

    def __call__(self, self_: Any, super_: Mapping[str, Any]) -> dict[str, Any]:
        logger.debug("using override (%s): %s", self.kind, self.project_id)
        return {self.project_id: self.build(self_, super_)}


@dataclass(frozen=True)
class FlagOverride:
    """Applies a project's flags to the derivation already in the set."""

    project_id: str
    flags: tuple[Flag, ...]

    kind = OPTION_KIND

    def __call__(self, self_: Any, super_: Mapping[str, Any]) -> dict[str, Any]:
        if self.project_id not in super_:
            logger.warning(
                "Options %s tagged on %s, but no such package to apply them to",
                ", ".join(f.value for f in self.flags),
                self.project_id,
            )
            return {}
        derivation = super_[self.project_id]
        for flag in self.flags:
            derivation = self_.apply_flag(flag, derivation)
        return {self.project_id: derivation}


@dataclass
class Composition:
    """An ordered list of partial overrides plus the records that failed.

    Calling a Composition folds its partials with :func:`layer`.
    """

    partials: tuple[Override, ...] = ()
    failures: list[RecordFailure] = field(default_factory=list)

    def __call__(self, self_: Any, super_: Mapping[str, Any]) -> dict[str, Any]:
        return reduce(layer, self.partials, identity)(self_, super_)

    @property
    def project_ids(self) -> list[str]:
        """Projects contributed by partials that name one, in fold order.

        Plain override functions passed to :func:`compose` carry no project id
        and are not listed, although they still take part in the fold.
        """
        return [p.project_id for p in self.partials if hasattr(p, "project_id")]

    @property
    def ok(self) -> bool:
        return not self.failures

    def apply(self, self_: Any, base: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``base`` with this composition's overrides laid on top."""
        return {**base, **self(self_, base)}

    def raise_for_failures(self) -> None:
        if self.failures:
            raise CompositionError(self.failures)


def _expression_partial(project_id: str, content: str) -> PartialOverride:
    if not content.strip():
        raise MalformedRecord(project_id, "expression is empty")

    def build(self_: Any, super_: Mapping[str, Any]) -> Any:
        return self_.call_expression(project_id, content)

    return PartialOverride(OverrideKind.EXPRESSION.value, project_id, build)


def _descriptor_partial(project_id: str, content: str) -> PartialOverride:
    source = GitDescriptor.parse_record(project_id, content).to_source()

    def build(self_: Any, super_: Mapping[str, Any]) -> Any:
        return self_.call_source(project_id, source)

    return PartialOverride(OverrideKind.DESCRIPTOR.value, project_id, build)


_PARTIAL_BUILDERS = {
    OverrideKind.EXPRESSION: _expression_partial,
    OverrideKind.DESCRIPTOR: _descriptor_partial,
}


def partials_for(
    store: OverrideStore, kind: OverrideKind
) -> tuple[list[PartialOverride], list[RecordFailure]]:
    """Turn every record of one kind into a partial override.

    A record that cannot be read or parsed is reported as a failure and
    skipped; the remaining records are unaffected.
    """
    partials = []
    failures = []
    make = _PARTIAL_BUILDERS[kind]

    def skip(project_id: str, reason: str) -> None:
        logger.warning(
            "Skipping %s override for %s: %s", kind.value, project_id, reason
        )
        failures.append(RecordFailure(kind.value, project_id, reason))

    def unreadable(project_id: str, exc: StoreIOError) -> None:
        skip(project_id, exc.reason)

    for project_id, content in store.list_all(kind, on_error=unreadable):
        try:
            partials.append(make(project_id, content))
        except MalformedRecord as exc:
            skip(project_id, exc.reason)
    return partials, failures


def flag_partials(options: OptionTagStore) -> list[FlagOverride]:
    """One FlagOverride per tagged project, ordered by project id."""
    tagged: dict[str, list[Flag]] = {}
    for flag, projects in options.list_all().items():
        for project_id in projects:
            tagged.setdefault(project_id, []).append(flag)
    return [
        FlagOverride(project_id, tuple(tagged[project_id]))
        for project_id in sorted(tagged)
    ]


def compose(partials: Iterable[Override]) -> Composition:
    """Wrap an ordered sequence of overrides as a Composition."""
    return Composition(partials=tuple(partials))


def compose_store(
    store: OverrideStore,
    options: OptionTagStore | None = None,
    *,
    include_options: bool = True,
) -> Composition:
    """Build the combined override for everything currently in ``store``.

    Args:
        store: Override records to compose.
        options: Option tags to apply after the overrides (optional).
        include_options: Set False to skip the option layer even when
            ``options`` is given.

    Returns:
        A Composition whose ``failures`` lists every record that could not
        be read or parsed.
    """
    partials: list[Override] = []
    failures: list[RecordFailure] = []
    for kind in KIND_ORDER:
        kind_partials, kind_failures = partials_for(store, kind)
        if not kind_partials and not kind_failures:
            logger.debug("no overrides (%s)", kind.value)
        partials.extend(kind_partials)
        failures.extend(kind_failures)
    if options is not None and include_options:
        partials.extend(flag_partials(options))
    logger.info(
        "Composed %d override(s) with %d failure(s)", len(partials), len(failures)
    )
    return Composition(partials=tuple(partials), failures=failures)
