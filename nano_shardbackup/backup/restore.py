"""Rebuild a shard's index files from a shard backup metadata record."""

from datetime import datetime, timezone

from ..base import BaseBackupRepository, BaseIndexDirectory
from ..exceptions import BackendIOError, ChecksumMismatchError
from .._utils import bytes_to_mb, logger
from .file_paths import BackupFilePaths
from .models import BackedFile, ShardRestoreDetails
from .shard_backup_id import ShardBackupMetadata


class RestoreShard:
    """Copy every file referenced by one metadata record into a local index directory.

    Local files that already match the recorded checksum are kept as they are.
    A file whose copy or verification fails is removed before the error is raised.
    """

    def __init__(
        self,
        repository: BaseBackupRepository,
        backup_file_paths: BackupFilePaths,
        shard_backup_id_file: str,
        target_directory: BaseIndexDirectory,
        verify: bool = True,
    ):
        self.repository = repository
        self.backup_file_paths = backup_file_paths
        self.shard_backup_id_file = shard_backup_id_file
        self.target_directory = target_directory
        self.verify = verify

    async def restore(self) -> ShardRestoreDetails:
        """Restore the shard.

        Raises:
            RecordNotFoundError, RecordCorruptError: The metadata record is unusable
            ChecksumMismatchError: A restored file does not match its recorded checksum
            BackendIOError: Any repository or index I/O failure
        """
        start_time = datetime.now(timezone.utc)
        logger.info(
            f"Restoring {self.shard_backup_id_file} from {self.backup_file_paths.backup_location} "
            f"into {self.target_directory}"
        )

        metadata = await ShardBackupMetadata.load(
            self.repository,
            self.backup_file_paths.shard_backup_id_dir,
            self.shard_backup_id_file,
        )

        file_count = 0
        restored_count = 0
        total_size = 0
        restored_size = 0
        for backed_file in metadata.list_backed_files():
            file_count += 1
            total_size += backed_file.checksum.size
            if await self._is_up_to_date(backed_file):
                logger.debug(f"Keeping local index file {backed_file.original_filename}")
                continue
            await self._restore_file(backed_file)
            restored_count += 1
            restored_size += backed_file.checksum.size

        details = ShardRestoreDetails(
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
            index_file_count=file_count,
            restored_index_file_count=restored_count,
            index_size_mb=bytes_to_mb(total_size),
            restored_index_file_mb=bytes_to_mb(restored_size),
            shard_backup_id=self.shard_backup_id_file,
        )
        logger.info(f"Restore of {self.shard_backup_id_file} complete ({restored_count}/{file_count} files copied)")
        return details

    async def _is_up_to_date(self, backed_file: BackedFile) -> bool:
        name = backed_file.original_filename
        if not self.target_directory.file_exists(name):
            return False
        local_checksum = await self.repository.checksum(self.target_directory, name)
        if local_checksum == backed_file.checksum:
            return True
        logger.warning(f"Replacing local index file {name}: checksum {local_checksum} != {backed_file.checksum}")
        try:
            self.target_directory.delete_file(name)
        except OSError as e:
            raise BackendIOError(f"Unable to delete stale index file {name}: {e}", uri=name) from e
        return False

    async def _restore_file(self, backed_file: BackedFile) -> None:
        name = backed_file.original_filename
        try:
            await self.repository.copy_index_file_to(
                self.backup_file_paths.index_dir,
                backed_file.stored_name,
                self.target_directory,
                name,
            )
            if not self.verify:
                return
            restored_checksum = await self.repository.checksum(self.target_directory, name)
            if restored_checksum != backed_file.checksum:
                raise ChecksumMismatchError(name, backed_file.checksum, restored_checksum)
        except (BackendIOError, ChecksumMismatchError):
            self._discard(name)
            raise

    def _discard(self, name: str) -> None:
        """Remove a partially restored or unverified file from the target directory."""
        try:
            if self.target_directory.file_exists(name):
                self.target_directory.delete_file(name)
        except OSError as e:
            logger.warning(f"Unable to remove failed restore of {name}: {e}")
