"""Incremental, deduplicated backup of one shard."""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..base import BaseBackupRepository, BaseIndexCommitPolicy, BaseIndexDirectory, IndexCommit
from ..exceptions import PreconditionError
from .._utils import generate_blob_name, logger
from .file_paths import BackupFilePaths
from .models import ShardBackupDetails
from .shard_backup_id import ShardBackupMetadata
from .stats import BackupStats


class IncrementalShardBackup:
    """Back up a shard's index by reusing blobs from its previous backup.

    Every file of the reserved commit is checksummed. Files whose checksum matches
    the previous record's entry keep pointing at the existing blob; all other files
    are uploaded under a fresh blob name. The new metadata record is written only
    after every file has been handled, so a failed run leaves no trace that a
    later run could chain from.
    """

    def __init__(
        self,
        repository: BaseBackupRepository,
        commit_policy: BaseIndexCommitPolicy,
        index_directory: BaseIndexDirectory,
        backup_file_paths: BackupFilePaths,
        prev_shard_backup_id_file: Optional[str],
        shard_backup_id_file: str,
        shard_name: Optional[str] = None,
        blob_name_generator: Callable[[], str] = generate_blob_name,
    ):
        """Initialize a shard backup.

        Args:
            repository: Repository the backup is written to
            commit_policy: Hands out reservations on the shard's index commits
            index_directory: Local accessor for the shard's index files
            backup_file_paths: Layout of the backup location
            prev_shard_backup_id_file: Metadata filename of the previous backup of this
                shard, whose blobs may be reused. None starts from an empty record.
            shard_backup_id_file: Metadata filename this backup is stored under
            shard_name: Reported in the result details when given
            blob_name_generator: Produces unique names for newly uploaded blobs
        """
        self.repository = repository
        self.commit_policy = commit_policy
        self.index_directory = index_directory
        self.backup_file_paths = backup_file_paths
        self.prev_shard_backup_id_file = prev_shard_backup_id_file
        self.shard_backup_id_file = shard_backup_id_file
        self.shard_name = shard_name
        self.blob_name_generator = blob_name_generator

    async def backup(self) -> ShardBackupDetails:
        """Reserve the latest commit, back it up, and always release the reservation.

        Raises:
            PreconditionError: The index has no commit yet
            BackendIOError: Any repository or index I/O failure
            RecordNotFoundError, RecordCorruptError: The previous record is unusable
        """
        index_commit = await self._get_and_save_index_commit()
        try:
            return await self._backup(index_commit)
        finally:
            await self.commit_policy.release_commit(index_commit)

    async def _get_and_save_index_commit(self) -> IndexCommit:
        commit = await self.commit_policy.reserve_latest_commit()
        if commit is None:
            raise PreconditionError(
                f"Index does not yet have any commits for {self.shard_name or self.index_directory}"
            )
        logger.debug(f"Using latest commit: generation={commit.generation}")
        return commit

    # note: the commit must already be reserved so its files are not deleted concurrently
    async def _backup(self, index_commit: IndexCommit) -> ShardBackupDetails:
        backup_location = self.backup_file_paths.backup_location
        logger.info(
            f"Creating backup snapshot at {backup_location} shardBackupIdFile:{self.shard_backup_id_file}"
        )
        start_time = datetime.now(timezone.utc)

        stats = await self._incremental_copy(index_commit.file_names)

        details = ShardBackupDetails(
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
            index_file_count=stats.file_count,
            uploaded_index_file_count=stats.uploaded_file_count,
            index_size_mb=stats.index_size_mb,
            uploaded_index_file_mb=stats.total_uploaded_mb,
            shard=self.shard_name,
            shard_backup_id=self.shard_backup_id_file,
        )
        logger.info(
            f"Done creating backup snapshot at {backup_location} shardBackupIdFile:{self.shard_backup_id_file} "
            f"({stats.uploaded_file_count}/{stats.file_count} files uploaded)"
        )
        return details

    async def _get_prev_backup_point(self) -> ShardBackupMetadata:
        if self.prev_shard_backup_id_file is None:
            return ShardBackupMetadata.empty()
        return await ShardBackupMetadata.load(
            self.repository,
            self.backup_file_paths.shard_backup_id_dir,
            self.prev_shard_backup_id_file,
        )

    async def _incremental_copy(self, index_files: Iterable[str]) -> BackupStats:
        old_backup_point = await self._get_prev_backup_point()
        current_backup_point = ShardBackupMetadata.empty()
        index_dir = self.backup_file_paths.index_dir
        stats = BackupStats()

        for file_name in index_files:
            backed_file = old_backup_point.get_file(file_name)
            # Always recomputed, also when the file is expected to be unchanged
            original_checksum = await self.repository.checksum(self.index_directory, file_name)

            if backed_file is not None and backed_file.checksum == original_checksum:
                current_backup_point.add_backed_file(backed_file)
                stats.skipped_uploading_file(original_checksum)
                logger.debug(f"Skipping unchanged index file {file_name} -> {backed_file.stored_name}")
                continue

            stored_name = self.blob_name_generator()
            await self.repository.copy_index_file_from(
                self.index_directory, file_name, index_dir, stored_name
            )
            current_backup_point.add_new_backed_file(stored_name, file_name, original_checksum)
            stats.uploaded_file(original_checksum)
            logger.debug(f"Uploaded index file {file_name} -> {stored_name} ({original_checksum.size:,} bytes)")

        await current_backup_point.store(
            self.repository,
            self.backup_file_paths.shard_backup_id_dir,
            self.shard_backup_id_file,
        )
        return stats
