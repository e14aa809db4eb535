"""Example of running incremental shard backups with the configuration system."""

import asyncio
import logging
import os
import tempfile

from nano_shardbackup import BackupConfig, IncrementalBackupManager, RepositoryConfig, ShardSource
from nano_shardbackup._storage import FSIndexCommitPolicy, FSIndexDirectory

logging.basicConfig(level=logging.INFO)


def make_shard(root: str, name: str, files: dict) -> ShardSource:
    """Create a tiny on-disk index and commit it."""
    directory = FSIndexDirectory(os.path.join(root, "index", name))
    for file_name, content in files.items():
        with directory.create_output(file_name) as f:
            f.write(content)
    policy = FSIndexCommitPolicy(directory)
    policy.commit()
    return ShardSource(name=name, index_directory=directory, commit_policy=policy)


async def example_default_config(root: str):
    """Back up two shards twice; the second generation uploads nothing."""
    print("=== Using Default Configuration ===")

    config = BackupConfig(repository=RepositoryConfig(location=os.path.join(root, "backups")))
    manager = IncrementalBackupManager.from_config(config)

    shards = [
        make_shard(root, "shard1", {"segments_1": b"seg", "_0.cfs": b"x" * 4096}),
        make_shard(root, "shard2", {"segments_1": b"seg", "_0.cfs": b"y" * 2048}),
    ]

    first = await manager.backup(shards)
    print(f"Generation {first.backup_id}: uploaded {first.uploaded_index_file_count}/{first.index_file_count} files")

    second = await manager.backup(shards)
    print(f"Generation {second.backup_id}: uploaded {second.uploaded_index_file_count}/{second.index_file_count} files")

    for name, details in second.shards.items():
        print(f"  {name}: {details.to_response()}")


async def example_restore(root: str):
    """Restore one shard from the latest generation."""
    print("\n=== Restoring a Shard ===")

    config = BackupConfig(repository=RepositoryConfig(location=os.path.join(root, "backups")))
    manager = IncrementalBackupManager.from_config(config)

    latest = await manager.get_latest_backup_id()
    target = FSIndexDirectory(os.path.join(root, "restored", "shard1"))
    details = await manager.restore_shard(latest, "shard1", target)
    print(f"Restored {details.restored_index_file_count} files into {target.path}: {target.list_all()}")


def example_env_config():
    """Configuration read from environment variables."""
    print("\n=== Using Environment Configuration ===")

    os.environ["BACKUP_REPOSITORY_BACKEND"] = "s3"
    os.environ["BACKUP_LOCATION"] = "s3://my-bucket/backups/collection1"
    os.environ["BACKUP_MAX_CONCURRENT_SHARDS"] = "8"

    config = BackupConfig.from_env()
    print(f"Backend: {config.repository.backend}")
    print(f"Location: {config.repository.location}")
    print(f"Max concurrent shards: {config.max_concurrent_shards}")


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmpdir:
        asyncio.run(example_default_config(tmpdir))
        asyncio.run(example_restore(tmpdir))
    example_env_config()
