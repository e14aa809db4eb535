"""Paths inside an incremental backup location."""

from ..base import BaseBackupRepository
from .._utils import logger

INDEX_DIR = "index"
SHARD_BACKUP_ID_DIR = "shard_backup_ids"


class BackupFilePaths:
    """Maps a backup location to its canonical subdirectories.

    ``index/`` holds the content blobs of every generation (shared, append-only)
    and ``shard_backup_ids/`` holds one metadata record per shard and generation.
    """

    def __init__(self, repository: BaseBackupRepository, backup_location: str):
        self.repository = repository
        self.backup_location = backup_location

    @property
    def index_dir(self) -> str:
        return self.repository.resolve(self.backup_location, INDEX_DIR)

    @property
    def shard_backup_id_dir(self) -> str:
        return self.repository.resolve(self.backup_location, SHARD_BACKUP_ID_DIR)

    def resolve(self, name: str) -> str:
        """URI of a file directly under the backup location."""
        return self.repository.resolve(self.backup_location, name)

    async def create_incremental_backup_folders(self) -> None:
        """Create every directory an incremental backup writes to.

        Raises:
            BackendIOError: If the repository cannot create a directory
        """
        for uri in (self.backup_location, self.index_dir, self.shard_backup_id_dir):
            if not await self.repository.exists(uri):
                logger.debug(f"Creating backup directory {uri}")
                await self.repository.create_directory(uri)

    def __repr__(self) -> str:
        return f"BackupFilePaths({self.backup_location!r})"
