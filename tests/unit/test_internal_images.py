"""
Unit tests for internal builder and tester injection.
"""
import glob
import os
import tempfile

import pytest

from podsmith.BUILDERS.internal_images import ACI_BUILDER, ACI_TESTER, AssetStore, InternalImages
from podsmith.MODELS.aci_manifest import AciManifest
from podsmith.errors import AssetNotFoundError, InternalImageImportError


def staging_files():
    return set(glob.glob(os.path.join(tempfile.gettempdir(), "podsmith-*.aci")))


class TestInternalImages:
    """Tests for InternalImages."""

    def test_builder_injected_and_imported(self, home, executor):
        """Test builder injection and import through a removed staging file."""
        executor.failures["image cat-manifest"] = ("", "not found")
        before = staging_files()
        manifest = AciManifest(name="example.com/foo:1")

        home.internal_images.import_builder_if_needed(manifest)

        assert manifest.builder.image == ACI_BUILDER
        fetches = executor.calls_for("fetch")
        assert len(fetches) == 1
        staged = fetches[0][-1]
        assert staged.endswith(".aci")
        assert not os.path.exists(staged)
        assert staging_files() == before

    def test_tester_injected(self, home, executor):
        """Test tester injection."""
        executor.failures["image cat-manifest"] = ("", "not found")
        manifest = AciManifest(name="example.com/foo:1")
        home.internal_images.import_tester_if_needed(manifest)
        assert manifest.test_builder == ACI_TESTER
        assert len(executor.calls_for("fetch")) == 1

    def test_not_imported_when_in_store(self, home, executor):
        """Test that an image already in the store is not imported again."""
        manifest = AciManifest(name="example.com/foo:1")
        home.internal_images.import_builder_if_needed(manifest)
        assert manifest.builder.image == ACI_BUILDER
        assert executor.calls_for("fetch") == []

    def test_declared_builder_kept(self, home, executor):
        """Test that a declared builder is not replaced."""
        manifest = AciManifest(name="example.com/foo:1", builder={"image": "example.com/b:1"})
        home.internal_images.import_builder_if_needed(manifest)
        assert manifest.builder.image == "example.com/b:1"
        assert executor.calls_for("image cat-manifest") == []

    def test_staging_paths_unique(self, home, executor):
        """Test that every import stages to its own file."""
        executor.failures["image cat-manifest"] = ("", "not found")
        home.internal_images.import_builder_if_needed(AciManifest(name="example.com/a:1"))
        home.internal_images.import_builder_if_needed(AciManifest(name="example.com/b:1"))
        fetches = executor.calls_for("fetch")
        assert fetches[0][-1] != fetches[1][-1]

    def test_staging_removed_on_fetch_failure(self, home, executor):
        """Test that the staging file is removed when the fetch fails."""
        executor.failures["image cat-manifest"] = ("", "not found")
        executor.failures["fetch"] = ("", "bad image")
        before = staging_files()
        with pytest.raises(InternalImageImportError):
            home.internal_images.import_builder_if_needed(AciManifest(name="example.com/a:1"))
        assert staging_files() == before

    def test_missing_asset(self, home, executor, tmp_path):
        """Test that a missing bundled asset raises AssetNotFoundError."""
        executor.failures["image cat-manifest"] = ("", "not found")
        images = InternalImages(home.rkt, AssetStore(str(tmp_path / "empty")))
        with pytest.raises(AssetNotFoundError):
            images.import_tester_if_needed(AciManifest(name="example.com/a:1"))
        assert executor.calls_for("fetch") == []
