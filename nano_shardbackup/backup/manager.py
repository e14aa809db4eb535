"""Backup and restore orchestration across the shards of one index."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..base import BaseBackupRepository, BaseIndexCommitPolicy, BaseIndexDirectory
from ..config import BackupConfig
from ..exceptions import RecordNotFoundError
from .._storage.factory import RepositoryFactory
from .._utils import generate_blob_name, logger, round_half_up
from .backup_id import (
    BackupId,
    find_all_backup_ids_from_file_listing,
    get_backup_props_name,
)
from .file_paths import BackupFilePaths
from .incremental import IncrementalShardBackup
from .models import IncrementalBackupResult, ShardBackupDetails, ShardRestoreDetails
from .properties import BackupProperties
from .restore import RestoreShard
from .shard_backup_id import ShardBackupId, validate_shard_name


@dataclass
class ShardSource:
    """A shard to back up: its name, index files and commit reservations."""
    name: str
    index_directory: BaseIndexDirectory
    commit_policy: BaseIndexCommitPolicy


class IncrementalBackupManager:
    """Run incremental backup generations at one location and restore from them."""

    def __init__(
        self,
        repository: BaseBackupRepository,
        location: str,
        config: Optional[BackupConfig] = None,
        blob_name_generator: Callable[[], str] = generate_blob_name,
    ):
        """Initialize backup manager.

        Args:
            repository: Repository holding the backups
            location: Backup location URI inside the repository
            config: Backup settings. If None, uses defaults.
            blob_name_generator: Produces unique names for newly uploaded blobs
        """
        self.repository = repository
        self.location = location
        self.config = config or BackupConfig()
        self.blob_name_generator = blob_name_generator
        self.file_paths = BackupFilePaths(repository, location)

    @classmethod
    def from_config(cls, config: BackupConfig) -> 'IncrementalBackupManager':
        repository = RepositoryFactory.create_repository_from_config(config.repository)
        return cls(repository, config.repository.location, config)

    async def list_backup_ids(self) -> List[BackupId]:
        """List every generation at this location, oldest first."""
        if not await self.repository.exists(self.location):
            return []
        names = await self.repository.list_all(self.location)
        return sorted(find_all_backup_ids_from_file_listing(names))

    async def get_latest_backup_id(self) -> Optional[BackupId]:
        backup_ids = await self.list_backup_ids()
        return backup_ids[-1] if backup_ids else None

    async def get_backup_properties(self, backup_id: BackupId) -> BackupProperties:
        return await BackupProperties.load(self.repository, self.file_paths, backup_id)

    async def get_shard_backup_id_file(self, backup_id: BackupId, shard_name: str) -> Optional[str]:
        properties = await self.get_backup_properties(backup_id)
        return properties.get_shard_backup_id_file(shard_name)

    async def backup(self, shards: List[ShardSource]) -> IncrementalBackupResult:
        """Back up every shard as a new generation.

        Each shard chains from its record in the latest existing generation. The
        generation's properties file is written only after all shards succeeded;
        if any shard fails its error is raised and the generation stays invisible.

        Args:
            shards: Shards to back up; names must be unique

        Returns:
            IncrementalBackupResult with per-shard details

        Raises:
            MalformedIdentifierError: A shard name cannot be used in record names;
                raised before anything is written
        """
        if not shards:
            raise ValueError("At least one shard is required")
        names = [shard.name for shard in shards]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate shard names: {names}")
        for name in names:
            validate_shard_name(name)

        start_time = datetime.now(timezone.utc)
        await self.file_paths.create_incremental_backup_folders()

        latest_backup_id = await self.get_latest_backup_id()
        backup_id = BackupId.next_after(latest_backup_id)
        shard_backup_ids = [ShardBackupId(shard.name, backup_id) for shard in shards]

        prev_properties = None
        if latest_backup_id is not None:
            prev_properties = await self.get_backup_properties(latest_backup_id)

        logger.info(f"Starting backup generation {backup_id} of {len(shards)} shards at {self.location}")

        semaphore = asyncio.Semaphore(self.config.max_concurrent_shards)

        async def _backup_shard(shard: ShardSource, shard_backup_id: ShardBackupId) -> ShardBackupDetails:
            prev_file = None
            if prev_properties is not None:
                prev_file = prev_properties.get_shard_backup_id_file(shard.name)
            async with semaphore:
                shard_backup = IncrementalShardBackup(
                    repository=self.repository,
                    commit_policy=shard.commit_policy,
                    index_directory=shard.index_directory,
                    backup_file_paths=self.file_paths,
                    prev_shard_backup_id_file=prev_file,
                    shard_backup_id_file=shard_backup_id.metadata_filename(),
                    shard_name=shard.name,
                    blob_name_generator=self.blob_name_generator,
                )
                return await shard_backup.backup()

        results = await asyncio.gather(
            *[_backup_shard(shard, sbid) for shard, sbid in zip(shards, shard_backup_ids)],
            return_exceptions=True,
        )

        failures = [(name, result) for name, result in zip(names, results) if isinstance(result, BaseException)]
        if failures:
            for name, error in failures:
                logger.error(f"Backup of shard {name} in generation {backup_id} failed: {error}")
            raise failures[0][1]

        shard_details: Dict[str, ShardBackupDetails] = dict(zip(names, results))
        end_time = datetime.now(timezone.utc)

        properties = BackupProperties.create(backup_id, start_time)
        for shard_backup_id in shard_backup_ids:
            properties.put_shard_backup_id_file(shard_backup_id)
        properties.put("endTime", end_time.isoformat())
        properties.put("indexFileCount", sum(d.index_file_count for d in shard_details.values()))
        properties.put("indexSizeMB", round_half_up(sum(d.index_size_mb for d in shard_details.values()), 3))
        await properties.store(self.repository, self.file_paths, backup_id)

        logger.info(f"Backup generation {backup_id} complete at {self.location}")

        return IncrementalBackupResult(
            backup_id=backup_id.id,
            location=self.location,
            start_time=start_time,
            end_time=end_time,
            shards=shard_details,
        )

    async def restore_shard(
        self,
        backup_id: BackupId,
        shard_name: str,
        target_directory: BaseIndexDirectory,
    ) -> ShardRestoreDetails:
        """Restore one shard of a generation into a local index directory."""
        shard_backup_id_file = await self.get_shard_backup_id_file(backup_id, shard_name)
        if shard_backup_id_file is None:
            props_uri = self.file_paths.resolve(get_backup_props_name(backup_id))
            raise RecordNotFoundError(f"{props_uri} (shard {shard_name})")

        restore = RestoreShard(
            repository=self.repository,
            backup_file_paths=self.file_paths,
            shard_backup_id_file=shard_backup_id_file,
            target_directory=target_directory,
            verify=self.config.verify_restore,
        )
        return await restore.restore()
