from .backup import (
    BackupId,
    IncrementalBackupManager,
    IncrementalShardBackup,
    RestoreShard,
    ShardBackupId,
    ShardBackupMetadata,
    ShardSource,
)
from .base import Checksum, IndexCommit
from .config import BackupConfig, RepositoryConfig

__version__ = "0.1.0"
__author__ = "nano-shardbackup contributors"
