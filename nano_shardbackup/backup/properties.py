"""Top-level properties file written once per backup generation."""

from datetime import datetime
from typing import Dict, Optional

from ..base import BaseBackupRepository
from ..exceptions import RecordCorruptError, RecordNotFoundError
from .._utils import logger
from .backup_id import BackupId, get_backup_props_name
from .file_paths import BackupFilePaths
from .shard_backup_id import ShardBackupId

SHARD_BACKUP_ID_KEY_SUFFIX = ".md"


class BackupProperties:
    """``key=value`` summary of one generation.

    Besides the generation's totals it records, per shard, the filename of that
    shard's metadata record. The next generation reads these entries to find the
    record it chains from.
    """

    def __init__(self, properties: Optional[Dict[str, str]] = None):
        self._properties: Dict[str, str] = dict(properties or {})

    @classmethod
    def create(cls, backup_id: BackupId, start_time: datetime) -> 'BackupProperties':
        return cls({
            "backupId": str(backup_id.id),
            "startTime": start_time.isoformat(),
        })

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._properties.get(key, default)

    def put(self, key: str, value) -> None:
        key, value = str(key), str(value)
        if not key or "=" in key or "\n" in key or "\n" in value:
            raise ValueError(f"Invalid backup property {key!r}={value!r}")
        self._properties[key] = value

    def put_shard_backup_id_file(self, shard_backup_id: ShardBackupId) -> str:
        filename = shard_backup_id.metadata_filename()
        self.put(shard_backup_id.shard_name + SHARD_BACKUP_ID_KEY_SUFFIX, filename)
        return filename

    def get_shard_backup_id_file(self, shard_name: str) -> Optional[str]:
        return self._properties.get(shard_name + SHARD_BACKUP_ID_KEY_SUFFIX)

    def get_all_shard_backup_id_files(self) -> Dict[str, str]:
        """Shard name -> metadata filename for every shard in this generation."""
        return {
            key[:-len(SHARD_BACKUP_ID_KEY_SUFFIX)]: value
            for key, value in self._properties.items()
            if key.endswith(SHARD_BACKUP_ID_KEY_SUFFIX)
        }

    def to_text(self) -> str:
        lines = ["#Backup properties"]
        lines.extend(f"{key}={self._properties[key]}" for key in sorted(self._properties))
        return "\n".join(lines) + "\n"

    @classmethod
    def from_text(cls, text: str, uri: str = "<text>") -> 'BackupProperties':
        properties = {}
        for line_number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped[0] in "#!":
                continue
            key, sep, value = stripped.partition("=")
            if not sep or not key.strip():
                raise RecordCorruptError(uri, f"line {line_number} is not a key=value pair: {line!r}")
            properties[key.strip()] = value.strip()
        return cls(properties)

    async def store(self, repository: BaseBackupRepository, backup_file_paths: BackupFilePaths, backup_id: BackupId) -> None:
        uri = backup_file_paths.resolve(get_backup_props_name(backup_id))
        await repository.write_file(uri, self.to_text().encode("utf-8"))
        logger.debug(f"Stored backup properties {uri}")

    @classmethod
    async def load(
        cls,
        repository: BaseBackupRepository,
        backup_file_paths: BackupFilePaths,
        backup_id: BackupId,
    ) -> 'BackupProperties':
        uri = backup_file_paths.resolve(get_backup_props_name(backup_id))
        if not await repository.exists(uri):
            raise RecordNotFoundError(uri)
        raw = await repository.read_file(uri)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RecordCorruptError(uri, str(e)) from e
        return cls.from_text(text, uri)

    def __len__(self) -> int:
        return len(self._properties)
