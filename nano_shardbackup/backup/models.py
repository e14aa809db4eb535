"""Data models for incremental shard backup/restore."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..base import Checksum

METADATA_FORMAT_VERSION = 1


class BackedFile(BaseModel):
    """One index file as stored in the repository."""

    model_config = ConfigDict(frozen=True)

    stored_name: str = Field(..., min_length=1, description="Blob name under index/")
    original_filename: str = Field(..., min_length=1, description="Index file name in the shard")
    checksum: Checksum


class ShardBackupMetadataDocument(BaseModel):
    """On-repository JSON form of a shard backup metadata record."""

    version: int = METADATA_FORMAT_VERSION
    files: Dict[str, BackedFile] = Field(default_factory=dict)


class ShardBackupDetails(BaseModel):
    """Result of backing up one shard."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    index_file_count: int = Field(..., alias="indexFileCount")
    uploaded_index_file_count: int = Field(..., alias="uploadedIndexFileCount")
    index_size_mb: float = Field(..., alias="indexSizeMB")
    uploaded_index_file_mb: float = Field(..., alias="uploadedIndexFileMB")
    shard: Optional[str] = None
    shard_backup_id: str = Field(..., alias="shardBackupId")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ShardRestoreDetails(BaseModel):
    """Result of restoring one shard."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    index_file_count: int = Field(..., alias="indexFileCount")
    restored_index_file_count: int = Field(..., alias="restoredIndexFileCount")
    index_size_mb: float = Field(..., alias="indexSizeMB")
    restored_index_file_mb: float = Field(..., alias="restoredIndexFileMB")
    shard_backup_id: str = Field(..., alias="shardBackupId")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class IncrementalBackupResult(BaseModel):
    """Result of one backup generation across all shards."""

    backup_id: int
    location: str
    start_time: datetime
    end_time: datetime
    shards: Dict[str, ShardBackupDetails]

    @property
    def index_file_count(self) -> int:
        return sum(details.index_file_count for details in self.shards.values())

    @property
    def uploaded_index_file_count(self) -> int:
        return sum(details.uploaded_index_file_count for details in self.shards.values())
