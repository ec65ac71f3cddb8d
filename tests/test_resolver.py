"""Tests for package-version resolution against an index archive."""

import logging
import tempfile

import pytest

from overridez.core.resolver import PackageResolver, matches, search_prefix
from overridez.errors import AcquisitionFailure, PackageNotFound

BEAM_CABAL = "name: beam-core\nversion: 0.9.0.0\n"


@pytest.fixture
def tmp_dirs(tmp_path, monkeypatch):
    """Point tempfile at a private directory so leaks can be observed."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


class TestMatching:
    def test_prefix_with_and_without_version(self):
        assert search_prefix("beam-core") == "/beam-core/"
        assert search_prefix("beam-core", "0.9.0.0") == "/beam-core/0.9.0.0/"

    def test_member_at_archive_root_matches(self):
        assert matches("beam-core/0.9.0.0/beam-core.cabal", "beam-core")

    def test_suffix_named_package_does_not_match(self):
        assert not matches("reflex-dom/0.4/reflex-dom.cabal", "dom")

    def test_non_descriptor_members_ignored(self):
        assert not matches("beam-core/0.9.0.0/package.json", "beam-core")
        assert not matches("beam-core/preferred-versions", "beam-core")


class TestFind:
    def test_unversioned_emits_advisory(self, make_index, caplog):
        index = make_index({"beam-core/0.9.0.0/beam-core.cabal": BEAM_CABAL})
        with caplog.at_level(logging.WARNING, logger="overridez"):
            resolution = PackageResolver(index).find("beam-core")
        assert resolution.member == "beam-core/0.9.0.0/beam-core.cabal"
        assert resolution.version == "0.9.0.0"
        assert not resolution.pinned
        assert resolution.advisory is not None
        assert "0.9.0.0" in resolution.advisory
        assert "No version given for beam-core" in caplog.text

    def test_versioned_has_no_advisory(self, make_index, caplog):
        index = make_index({"beam-core/0.9.0.0/beam-core.cabal": BEAM_CABAL})
        advisories = []
        resolver = PackageResolver(index, on_advisory=advisories.append)
        with caplog.at_level(logging.WARNING, logger="overridez"):
            resolution = resolver.find("beam-core", "0.9.0.0")
        assert resolution.member == "beam-core/0.9.0.0/beam-core.cabal"
        assert resolution.pinned
        assert resolution.advisory is None
        assert advisories == []
        assert caplog.text == ""

    def test_last_match_in_archive_order_wins(self, make_index):
        index = make_index(
            {
                "lens/4.17/lens.cabal": "v4.17",
                "lens/5.2/lens.cabal": "v5.2",
                "lens/4.19/lens.cabal": "v4.19",
            }
        )
        assert PackageResolver(index).find("lens").version == "4.19"

    def test_version_filter(self, make_index):
        index = make_index(
            {
                "lens/4.17/lens.cabal": "v4.17",
                "lens/5.2/lens.cabal": "v5.2",
            }
        )
        assert PackageResolver(index).find("lens", "4.17").version == "4.17"

    def test_advisory_callback(self, make_index):
        index = make_index({"lens/5.2/lens.cabal": "v5.2"})
        advisories = []
        PackageResolver(index, on_advisory=advisories.append).find("lens")
        assert len(advisories) == 1
        assert "lens-5.2" in advisories[0]

    def test_not_found_names_package(self, make_index):
        index = make_index({"lens/5.2/lens.cabal": "v5.2"})
        with pytest.raises(PackageNotFound) as excinfo:
            PackageResolver(index).find("aeson", "2.0")
        assert excinfo.value.name == "aeson"
        assert "aeson-2.0" in str(excinfo.value)

    def test_missing_index(self, tmp_path):
        with pytest.raises(AcquisitionFailure):
            PackageResolver(tmp_path / "missing.tar").find("lens")

    def test_unreadable_index(self, tmp_path):
        bogus = tmp_path / "bogus.tar"
        bogus.write_text("this is not a tar archive")
        with pytest.raises(AcquisitionFailure):
            PackageResolver(bogus).find("lens")


class TestResolve:
    def test_extracts_selected_descriptor(self, make_index, tmp_dirs):
        index = make_index(
            {
                "beam-core/0.8.0.0/beam-core.cabal": "old",
                "beam-core/0.9.0.0/beam-core.cabal": BEAM_CABAL,
            }
        )
        with PackageResolver(index).resolve("beam-core", "0.9.0.0") as descriptor:
            assert descriptor.path.name == "beam-core.cabal"
            assert descriptor.path.read_text() == BEAM_CABAL
            assert descriptor.resolution.version == "0.9.0.0"
            extracted_dir = descriptor.path.parent
            assert list(extracted_dir.iterdir()) == [descriptor.path]
        assert not extracted_dir.exists()
        assert list(tmp_dirs.iterdir()) == []

    def test_directory_removed_when_block_raises(self, make_index, tmp_dirs):
        index = make_index({"lens/5.2/lens.cabal": "v5.2"})
        with pytest.raises(RuntimeError):
            with PackageResolver(index).resolve("lens", "5.2") as descriptor:
                extracted = descriptor.path
                raise RuntimeError("generator failed")
        assert not extracted.exists()
        assert list(tmp_dirs.iterdir()) == []

    def test_not_found_creates_no_directory(self, make_index, tmp_dirs):
        index = make_index({"lens/5.2/lens.cabal": "v5.2"})
        with pytest.raises(PackageNotFound):
            with PackageResolver(index).resolve("aeson"):
                pytest.fail("resolve should not yield")
        assert list(tmp_dirs.iterdir()) == []
