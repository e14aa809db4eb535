"""Contract-based tests for the local filesystem repository."""

import os
import pytest
from unittest.mock import patch

from tests.storage.base import BaseBackupRepositoryTestSuite, RepositoryContract
from tests.utils import write_index_files
from nano_shardbackup._storage.repo_local import LocalBackupRepository
from nano_shardbackup.exceptions import BackendIOError


class TestLocalRepositoryContract(BaseBackupRepositoryTestSuite):
    """Local repository contract tests."""

    @pytest.fixture
    def repository(self):
        """Provide local repository instance."""
        return LocalBackupRepository(global_config={"checksum_chunk_size": 5})

    @pytest.fixture
    def root_uri(self, temp_storage_dir):
        root = temp_storage_dir / "repo"
        root.mkdir()
        return str(root)

    @pytest.fixture
    def contract(self):
        """Define local repository capabilities."""
        return RepositoryContract(
            supports_listing=True,
            supports_atomic_write=True,
        )


class TestLocalRepositorySpecifics:
    """Behaviour specific to the filesystem implementation."""

    def test_resolve(self):
        repo = LocalBackupRepository()
        assert repo.resolve("/backups/c1", "index") == os.path.join("/backups/c1", "index")
        assert repo.resolve("/backups/c1", "shard_backup_ids", "md_shard1_0.json") == os.path.join(
            "/backups/c1", "shard_backup_ids", "md_shard1_0.json"
        )

    @pytest.mark.asyncio
    async def test_write_leaves_no_temp_files(self, temp_storage_dir):
        repo = LocalBackupRepository()
        uri = str(temp_storage_dir / "md_shard1_0.json")

        await repo.write_file(uri, b"first")
        await repo.write_file(uri, b"second")

        assert os.listdir(temp_storage_dir) == ["md_shard1_0.json"]

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_content(self, temp_storage_dir):
        """A write that fails before the rename leaves the old file untouched."""
        repo = LocalBackupRepository()
        uri = str(temp_storage_dir / "md_shard1_0.json")
        await repo.write_file(uri, b"previous")

        with patch("nano_shardbackup._storage.repo_local.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(BackendIOError):
                await repo.write_file(uri, b"replacement")

        with open(uri, "rb") as f:
            assert f.read() == b"previous"
        assert os.listdir(temp_storage_dir) == ["md_shard1_0.json"]

    @pytest.mark.asyncio
    async def test_copy_never_overwrites_existing_blob(self, temp_storage_dir, index_directory):
        repo = LocalBackupRepository()
        blob_dir = str(temp_storage_dir / "index")
        await repo.create_directory(blob_dir)
        write_index_files(index_directory, {"_0.cfs": b"v1", "_1.cfs": b"v2"})

        await repo.copy_index_file_from(index_directory, "_0.cfs", blob_dir, "blob-a")
        with pytest.raises(BackendIOError):
            await repo.copy_index_file_from(index_directory, "_1.cfs", blob_dir, "blob-a")

        with open(os.path.join(blob_dir, "blob-a"), "rb") as f:
            assert f.read() == b"v1"

    @pytest.mark.asyncio
    async def test_list_missing_directory_raises(self, temp_storage_dir):
        repo = LocalBackupRepository()
        with pytest.raises(BackendIOError):
            await repo.list_all(str(temp_storage_dir / "nope"))
