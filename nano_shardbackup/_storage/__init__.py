"""Storage module with lazy loading support."""

from typing import TYPE_CHECKING

# Always import factory, registration and the filesystem index (lightweight)
from .factory import RepositoryFactory, _register_backends
from .index_fs import FSIndexDirectory, FSIndexCommitPolicy

# Type checking imports (no runtime cost)
if TYPE_CHECKING:
    from .repo_local import LocalBackupRepository
    from .repo_s3 import S3BackupRepository


def __getattr__(name):
    """Lazy import repository backends so aioboto3 is only loaded for S3."""
    if name == "LocalBackupRepository":
        from .repo_local import LocalBackupRepository
        return LocalBackupRepository
    elif name == "S3BackupRepository":
        from .repo_s3 import S3BackupRepository
        return S3BackupRepository
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "RepositoryFactory",
    "_register_backends",
    "FSIndexDirectory",
    "FSIndexCommitPolicy",
    "LocalBackupRepository",
    "S3BackupRepository",
]
