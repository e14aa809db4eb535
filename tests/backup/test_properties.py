"""Tests for the per-generation properties file."""

import pytest
from datetime import datetime, timezone

from nano_shardbackup.backup.backup_id import BackupId
from nano_shardbackup.backup.file_paths import BackupFilePaths
from nano_shardbackup.backup.properties import BackupProperties
from nano_shardbackup.backup.shard_backup_id import ShardBackupId
from nano_shardbackup.exceptions import RecordCorruptError, RecordNotFoundError


@pytest.fixture
def file_paths(local_repository, backup_location):
    return BackupFilePaths(local_repository, backup_location)


def test_create():
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    properties = BackupProperties.create(BackupId(3), start)

    assert properties.get("backupId") == "3"
    assert properties.get("startTime") == "2024-05-01T12:00:00+00:00"
    assert properties.get("missing") is None
    assert properties.get("missing", "x") == "x"


def test_shard_backup_id_entries():
    properties = BackupProperties()
    filename = properties.put_shard_backup_id_file(ShardBackupId("shard1", BackupId(2)))
    properties.put_shard_backup_id_file(ShardBackupId("shard2", BackupId(2)))
    properties.put("indexFileCount", 12)

    assert filename == "md_shard1_2.json"
    assert properties.get("shard1.md") == "md_shard1_2.json"
    assert properties.get_shard_backup_id_file("shard1") == "md_shard1_2.json"
    assert properties.get_shard_backup_id_file("shard3") is None
    assert properties.get_all_shard_backup_id_files() == {
        "shard1": "md_shard1_2.json",
        "shard2": "md_shard2_2.json",
    }


@pytest.mark.parametrize("key,value", [
    ("", "v"),
    ("a=b", "v"),
    ("a\nb", "v"),
    ("a", "line1\nline2"),
])
def test_put_rejects_invalid(key, value):
    with pytest.raises(ValueError, match="Invalid backup property"):
        BackupProperties().put(key, value)


def test_text_round_trip():
    properties = BackupProperties({"backupId": "0", "shard1.md": "md_shard1_0.json", "indexSizeMB": "1.5"})

    text = properties.to_text()

    assert text.splitlines() == [
        "#Backup properties",
        "backupId=0",
        "indexSizeMB=1.5",
        "shard1.md=md_shard1_0.json",
    ]
    parsed = BackupProperties.from_text(text)
    assert parsed.get_all_shard_backup_id_files() == {"shard1": "md_shard1_0.json"}
    assert len(parsed) == 3


def test_from_text_skips_comments_and_blank_lines():
    text = "# comment\n! also a comment\n\n  backupId = 4 \nstartTime=2024-01-01T00:00:00+00:00\n"

    properties = BackupProperties.from_text(text)

    assert properties.get("backupId") == "4"
    assert properties.get("startTime") == "2024-01-01T00:00:00+00:00"


def test_from_text_corrupt():
    with pytest.raises(RecordCorruptError, match="line 2"):
        BackupProperties.from_text("backupId=1\nno separator here\n", "backup_1.properties")


@pytest.mark.asyncio
async def test_store_and_load(local_repository, file_paths, backup_location):
    await local_repository.create_directory(backup_location)
    properties = BackupProperties.create(BackupId(0), datetime.now(timezone.utc))
    properties.put_shard_backup_id_file(ShardBackupId("shard1", BackupId(0)))

    await properties.store(local_repository, file_paths, BackupId(0))

    assert await local_repository.list_all(backup_location) == ["backup_0.properties"]
    loaded = await BackupProperties.load(local_repository, file_paths, BackupId(0))
    assert loaded.get_shard_backup_id_file("shard1") == "md_shard1_0.json"
    assert loaded.get("backupId") == "0"


@pytest.mark.asyncio
async def test_load_traditional_name(local_repository, file_paths, backup_location):
    await local_repository.create_directory(backup_location)
    await local_repository.write_file(file_paths.resolve("backup.properties"), b"collection=c1\n")

    loaded = await BackupProperties.load(local_repository, file_paths, BackupId.traditional_backup())

    assert loaded.get("collection") == "c1"


@pytest.mark.asyncio
async def test_load_missing(local_repository, file_paths):
    with pytest.raises(RecordNotFoundError):
        await BackupProperties.load(local_repository, file_paths, BackupId(5))


@pytest.mark.asyncio
async def test_load_not_utf8(local_repository, file_paths, backup_location):
    await local_repository.create_directory(backup_location)
    await local_repository.write_file(file_paths.resolve("backup_0.properties"), b"\xff\xfe\x00bad")

    with pytest.raises(RecordCorruptError):
        await BackupProperties.load(local_repository, file_paths, BackupId(0))
