"""Base test suites for repository implementations."""

from .repository_suite import BaseBackupRepositoryTestSuite, RepositoryContract
from .fixtures import (
    temp_storage_dir,
    local_repository,
    backup_location,
    index_directory,
    commit_policy,
    standard_index_files,
)

__all__ = [
    "BaseBackupRepositoryTestSuite",
    "RepositoryContract",
    "temp_storage_dir",
    "local_repository",
    "backup_location",
    "index_directory",
    "commit_policy",
    "standard_index_files",
]
