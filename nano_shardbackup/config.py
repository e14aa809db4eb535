"""Configuration management for nano-shardbackup."""

import os
from dataclasses import dataclass, field
from typing import Optional

from .base import DEFAULT_CHECKSUM_CHUNK_SIZE


@dataclass(frozen=True)
class RepositoryConfig:
    """Backup repository configuration."""
    backend: str = "local"  # local, s3
    location: str = "./shard_backups"  # directory path, or s3://bucket/prefix
    checksum_chunk_size: int = DEFAULT_CHECKSUM_CHUNK_SIZE

    # S3 specific settings
    s3_region: str = "us-east-1"
    s3_endpoint_url: Optional[str] = None
    s3_max_attempts: int = 3

    @classmethod
    def from_env(cls) -> 'RepositoryConfig':
        """Create config from environment variables."""
        return cls(
            backend=os.getenv("BACKUP_REPOSITORY_BACKEND", "local"),
            location=os.getenv("BACKUP_LOCATION", "./shard_backups"),
            checksum_chunk_size=int(os.getenv("BACKUP_CHECKSUM_CHUNK_SIZE", str(DEFAULT_CHECKSUM_CHUNK_SIZE))),
            s3_region=os.getenv("AWS_REGION", "us-east-1"),
            s3_endpoint_url=os.getenv("BACKUP_S3_ENDPOINT_URL", None),
            s3_max_attempts=int(os.getenv("BACKUP_S3_MAX_ATTEMPTS", "3")),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_backends = {"local", "s3"}
        if self.backend not in valid_backends:
            raise ValueError(f"Unknown repository backend: {self.backend}. Available: {valid_backends}")
        if not self.location:
            raise ValueError("location must not be empty")
        if self.backend == "s3" and not self.location.startswith("s3://"):
            raise ValueError(f"s3 location must start with s3://, got {self.location}")
        if self.checksum_chunk_size <= 0:
            raise ValueError(f"checksum_chunk_size must be positive, got {self.checksum_chunk_size}")
        if self.s3_max_attempts <= 0:
            raise ValueError(f"s3_max_attempts must be positive, got {self.s3_max_attempts}")

    def to_dict(self) -> dict:
        """Global config dict handed to repository implementations."""
        config_dict = {
            "location": self.location,
            "checksum_chunk_size": self.checksum_chunk_size,
        }
        if self.backend == "s3":
            config_dict.update({
                "s3_region": self.s3_region,
                "s3_endpoint_url": self.s3_endpoint_url,
                "s3_max_attempts": self.s3_max_attempts,
            })
        return config_dict


@dataclass(frozen=True)
class BackupConfig:
    """Top-level backup configuration."""
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    max_concurrent_shards: int = 4
    verify_restore: bool = True

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create complete config from environment variables."""
        return cls(
            repository=RepositoryConfig.from_env(),
            max_concurrent_shards=int(os.getenv("BACKUP_MAX_CONCURRENT_SHARDS", "4")),
            verify_restore=os.getenv("BACKUP_VERIFY_RESTORE", "true").lower() == "true",
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.max_concurrent_shards <= 0:
            raise ValueError(f"max_concurrent_shards must be positive, got {self.max_concurrent_shards}")
