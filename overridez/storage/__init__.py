"""Storage layer for override records and option tags."""

from .kv import DirectoryStore, validate_key
from .options import (
    AddFlagsResult,
    Flag,
    OptionTagStore,
    RECOGNIZED_FLAGS,
)
from .overrides import (
    KIND_ORDER,
    OverrideKind,
    OverrideStore,
    log_discovery,
)
from .records import (
    GitDescriptor,
    GithubSource,
    extract_expression_name,
    parse_github_url,
)

__all__ = [
    "DirectoryStore",
    "validate_key",
    "AddFlagsResult",
    "Flag",
    "OptionTagStore",
    "RECOGNIZED_FLAGS",
    "KIND_ORDER",
    "OverrideKind",
    "OverrideStore",
    "log_discovery",
    "GitDescriptor",
    "GithubSource",
    "extract_expression_name",
    "parse_github_url",
]
