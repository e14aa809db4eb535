"""Shared fixtures and test data for repository and index testing."""

import pytest
import tempfile
from pathlib import Path
from typing import Dict

from nano_shardbackup._storage.index_fs import FSIndexDirectory, FSIndexCommitPolicy
from nano_shardbackup._storage.repo_local import LocalBackupRepository


@pytest.fixture
def temp_storage_dir():
    """Temporary directory for storage tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def local_repository() -> LocalBackupRepository:
    """Local repository with a small checksum chunk size to exercise chunking."""
    return LocalBackupRepository(global_config={"checksum_chunk_size": 7})


@pytest.fixture
def backup_location(temp_storage_dir) -> str:
    """Backup location inside the temp directory (not created yet)."""
    return str(temp_storage_dir / "backups" / "collection1")


@pytest.fixture
def index_directory(temp_storage_dir) -> FSIndexDirectory:
    """Empty shard index directory."""
    return FSIndexDirectory(str(temp_storage_dir / "index" / "shard1"))


@pytest.fixture
def commit_policy(index_directory) -> FSIndexCommitPolicy:
    """Commit policy over the shard index directory, with no commits yet."""
    return FSIndexCommitPolicy(index_directory)


@pytest.fixture
def standard_index_files() -> Dict[str, bytes]:
    """A small segment-style file set."""
    return {
        "segments_1": b"segments file generation 1",
        "_0.cfs": b"compound file for segment zero" * 10,
        "_0.cfe": b"compound entries",
        "_0.si": b"segment info zero",
        "_1.cfs": b"compound file for segment one" * 5,
    }
