"""Configuration management for overridez.

Config resolution order (highest priority first):
1. Programmatic (OverridezConfig constructed in code, installed with configure())
2. Environment variables (OVERRIDEZ_ROOT, OVERRIDEZ_INDEX, ...)
3. Config file (~/.config/overridez/config.json, managed by `overridez config`)
4. Hardcoded defaults

The store root is resolved relative to the project directory, so one config
file serves every project on the machine.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "overridez"
CONFIG_FILE = CONFIG_DIR / "config.json"


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class StoreConfig:
    """Where override records and option tags live."""

    root: str = "nix/haskell-overridez"  # relative to the project directory


@dataclass
class ResolverConfig:
    """Package index used to resolve bare package names."""

    index_path: str = "~/.cabal/packages/hackage.haskell.org/01-index.tar"


@dataclass
class ToolsConfig:
    """External tools run during acquisition."""

    expression_generator: str = "cabal2nix"
    git_prefetcher: str = "nix-prefetch-git"


@dataclass
class OverridezConfig:
    """Top-level overridez configuration.

    Examples:
        # Package use: no files needed
        config = OverridezConfig(store=StoreConfig(root="overrides"))

        # CLI use: loads from ~/.config/overridez/config.json
        config = OverridezConfig.load()
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)

    @classmethod
    def load(cls) -> "OverridezConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: Load from config file if it exists
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: Env var overrides
        if val := os.environ.get("OVERRIDEZ_ROOT"):
            config.store.root = val
        if val := os.environ.get("OVERRIDEZ_INDEX"):
            config.resolver.index_path = val
        if val := os.environ.get("OVERRIDEZ_CABAL2NIX"):
            config.tools.expression_generator = val
        if val := os.environ.get("OVERRIDEZ_PREFETCH_GIT"):
            config.tools.git_prefetcher = val

        return config

    def save(self) -> None:
        """Save config to ~/.config/overridez/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "store": asdict(self.store),
            "resolver": asdict(self.resolver),
            "tools": asdict(self.tools),
        }

    def store_root(self, project_dir: Path | str = ".") -> Path:
        """Resolve the store root against a project directory."""
        root = Path(self.store.root).expanduser()
        if root.is_absolute():
            return root
        return Path(project_dir) / root

    @property
    def index_path_resolved(self) -> Path:
        return Path(self.resolver.index_path).expanduser()


# =============================================================================
# Config dict application
# =============================================================================

_SECTIONS = ("store", "resolver", "tools")


def _apply_dict(config: OverridezConfig, data: dict) -> None:
    """Apply a dict of values onto an OverridezConfig, ignoring unknown keys."""
    for section in _SECTIONS:
        values = data.get(section)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section)
        for k, v in values.items():
            if hasattr(target, k):
                setattr(target, k, str(v))
            else:
                logger.warning("Unknown config key %s.%s, ignoring", section, k)


# =============================================================================
# Global config singleton
# =============================================================================

_config: OverridezConfig | None = None


def get_config() -> OverridezConfig:
    """Get the global OverridezConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = OverridezConfig.load()
    return _config


def configure(config: OverridezConfig) -> None:
    """Set the global OverridezConfig programmatically."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
