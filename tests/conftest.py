"""Shared fixtures for overridez tests."""

import io
import tarfile
from pathlib import Path

import pytest

from overridez import config as config_module


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and env vars."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_dir / "config.json")
    for var in (
        "OVERRIDEZ_ROOT",
        "OVERRIDEZ_INDEX",
        "OVERRIDEZ_CABAL2NIX",
        "OVERRIDEZ_PREFETCH_GIT",
    ):
        monkeypatch.delenv(var, raising=False)
    config_module.reset_config()
    yield
    config_module.reset_config()


def write_index(path: Path, members: dict[str, str]) -> Path:
    """Write a tar archive with the given member names and text contents."""
    with tarfile.open(path, "w") as tar:
        for name, text in members.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def make_index(tmp_path):
    """Factory for small package index archives."""

    def _make(members: dict[str, str], name: str = "01-index.tar") -> Path:
        return write_index(tmp_path / name, members)

    return _make
