"""Composition, resolution and acquisition of package overrides."""

from .acquire import (
    Acquired,
    Acquirer,
    generate_expression,
    parse_package_target,
    prefetch_git,
)
from .compose import (
    Composition,
    FlagOverride,
    PackageBuilder,
    PartialOverride,
    compose,
    compose_store,
    identity,
    layer,
)
from .resolver import PackageResolver, Resolution, ResolvedDescriptor

__all__ = [
    "Acquired",
    "Acquirer",
    "generate_expression",
    "parse_package_target",
    "prefetch_git",
    "Composition",
    "FlagOverride",
    "PackageBuilder",
    "PartialOverride",
    "compose",
    "compose_store",
    "identity",
    "layer",
    "PackageResolver",
    "Resolution",
    "ResolvedDescriptor",
]
