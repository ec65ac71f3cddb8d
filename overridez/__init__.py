"""overridez: manage project-local package overrides for a Nix build.

Typical use from a build pipeline:

    from overridez import OverrideStore, OptionTagStore, compose_store

    root = "nix/haskell-overridez"
    override = compose_store(OverrideStore.at(root), OptionTagStore.at(root))
    override.raise_for_failures()
    packages = override.apply(builder, base_packages)
"""

__version__ = "0.3.0"

from .core import (  # noqa: E402
    Acquirer,
    Composition,
    PackageBuilder,
    PackageResolver,
    compose,
    compose_store,
    layer,
)
from .errors import (  # noqa: E402
    AcquisitionFailure,
    CompositionError,
    MalformedRecord,
    OverridezError,
    PackageNotFound,
    StoreIOError,
    UnrecognizedOption,
)
from .storage import (  # noqa: E402
    Flag,
    GitDescriptor,
    GithubSource,
    OptionTagStore,
    OverrideKind,
    OverrideStore,
)

__all__ = [
    "__version__",
    "Acquirer",
    "Composition",
    "PackageBuilder",
    "PackageResolver",
    "compose",
    "compose_store",
    "layer",
    "AcquisitionFailure",
    "CompositionError",
    "MalformedRecord",
    "OverridezError",
    "PackageNotFound",
    "StoreIOError",
    "UnrecognizedOption",
    "Flag",
    "GitDescriptor",
    "GithubSource",
    "OptionTagStore",
    "OverrideKind",
    "OverrideStore",
]
