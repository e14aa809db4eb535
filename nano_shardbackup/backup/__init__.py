"""Incremental shard backup and restore."""

from .backup_id import (
    BackupId,
    TRADITIONAL_BACKUP,
    get_backup_props_name,
    get_zk_state_dir,
    find_all_backup_ids_from_file_listing,
    find_most_recent_backup_id_from_file_listing,
)
from .file_paths import BackupFilePaths
from .incremental import IncrementalShardBackup
from .manager import IncrementalBackupManager, ShardSource
from .models import BackedFile, ShardBackupDetails, ShardRestoreDetails, IncrementalBackupResult
from .properties import BackupProperties
from .restore import RestoreShard
from .shard_backup_id import ShardBackupId, ShardBackupMetadata
from .stats import BackupStats

__all__ = [
    "BackupId",
    "TRADITIONAL_BACKUP",
    "get_backup_props_name",
    "get_zk_state_dir",
    "find_all_backup_ids_from_file_listing",
    "find_most_recent_backup_id_from_file_listing",
    "BackupFilePaths",
    "IncrementalShardBackup",
    "IncrementalBackupManager",
    "ShardSource",
    "BackedFile",
    "ShardBackupDetails",
    "ShardRestoreDetails",
    "IncrementalBackupResult",
    "BackupProperties",
    "RestoreShard",
    "ShardBackupId",
    "ShardBackupMetadata",
    "BackupStats",
]
