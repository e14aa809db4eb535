"""Test utilities for nano-shardbackup tests."""
import itertools
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from nano_shardbackup._storage.index_fs import FSIndexDirectory
from nano_shardbackup._storage.repo_local import LocalBackupRepository
from nano_shardbackup.base import IndexCommit
from nano_shardbackup.exceptions import BackendIOError

MB = 1024 * 1024


def write_index_files(directory: FSIndexDirectory, files: Dict[str, bytes]) -> None:
    """Write (or overwrite) index files in a directory."""
    for name, content in files.items():
        with directory.create_output(name) as f:
            f.write(content)


def read_index_file(directory: FSIndexDirectory, name: str) -> bytes:
    with directory.open_input(name) as f:
        return f.read()


def sequential_blob_names(prefix: str = "blob") -> Callable[[], str]:
    """Deterministic blob name generator: blob-0, blob-1, ..."""
    counter = itertools.count()
    return lambda: f"{prefix}-{next(counter)}"


@dataclass
class FailingLocalRepository(LocalBackupRepository):
    """Local repository whose uploads start failing after ``fail_after`` copies."""

    fail_after: int = 0
    uploads: List[str] = field(default_factory=list)

    async def copy_index_file_from(self, source_dir, source_name, dest_dir_uri, dest_name):
        if len(self.uploads) >= self.fail_after:
            raise BackendIOError(f"simulated upload failure for {source_name}", uri=dest_name)
        self.uploads.append(source_name)
        await super().copy_index_file_from(source_dir, source_name, dest_dir_uri, dest_name)


@dataclass
class InterruptedDownloadRepository(LocalBackupRepository):
    """Local repository whose downloads write a partial file and then fail."""

    async def copy_index_file_to(self, source_dir_uri, source_name, dest_dir, dest_name):
        with dest_dir.create_output(dest_name) as f:
            f.write(b"partial")
        raise BackendIOError(f"simulated download failure for {source_name}", uri=source_name)


class CountingCommitPolicy:
    """Commit policy returning a fixed commit and counting reserve/release calls."""

    def __init__(self, commit: IndexCommit = None):
        self.commit = commit
        self.reserved = 0
        self.released = 0

    async def reserve_latest_commit(self):
        if self.commit is None:
            return None
        self.reserved += 1
        return self.commit

    async def release_commit(self, commit):
        assert commit is self.commit
        self.released += 1
