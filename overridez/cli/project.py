"""Project context: where a project's override store lives and how to open it."""

from __future__ import annotations

from pathlib import Path

from ..config import OverridezConfig, get_config
from ..core.acquire import Acquirer
from ..core.resolver import PackageResolver
from ..storage.options import OPTIONS_DIR, OptionTagStore
from ..storage.overrides import KIND_ORDER, OverrideStore


class ProjectContext:
    """Context for one project directory.

    Provides the store root and ready-to-use stores for that project.
    """

    def __init__(self, project_dir: Path, config: OverridezConfig | None = None):
        self.project_dir = project_dir.resolve()
        self.config = config or get_config()
        self.store_root = self.config.store_root(self.project_dir)

    @property
    def exists(self) -> bool:
        """Check if any override or option directory has been created."""
        dirs = [kind.directory for kind in KIND_ORDER] + [OPTIONS_DIR]
        return any((self.store_root / d).is_dir() for d in dirs)

    def override_store(self) -> OverrideStore:
        return OverrideStore.at(self.store_root)

    def option_store(self) -> OptionTagStore:
        return OptionTagStore.at(self.store_root)

    def resolver(self) -> PackageResolver:
        return PackageResolver(self.config.index_path_resolved)

    def acquirer(self) -> Acquirer:
        return Acquirer(
            self.override_store(),
            self.option_store(),
            self.resolver(),
            expression_generator=self.config.tools.expression_generator,
            git_prefetcher=self.config.tools.git_prefetcher,
        )
