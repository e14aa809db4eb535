"""Shard backup identifiers and the per-shard metadata record."""

import json
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..base import BaseBackupRepository, Checksum
from ..exceptions import MalformedIdentifierError, RecordCorruptError, RecordNotFoundError
from .._utils import logger
from .backup_id import BackupId
from .models import BackedFile, ShardBackupMetadataDocument

SHARD_BACKUP_ID_PREFIX = "md"
METADATA_FILENAME_SUFFIX = ".json"

# Shard names become properties keys and record filenames
_SHARD_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9.\-]*")


def validate_shard_name(shard_name: str) -> None:
    """Raise MalformedIdentifierError unless the name is letters, digits, '.' and '-'."""
    if not isinstance(shard_name, str) or not _SHARD_NAME_PATTERN.fullmatch(shard_name):
        raise MalformedIdentifierError(
            f"Shard name must start with a letter or digit and contain only letters, digits, '.' or '-': {shard_name!r}"
        )


@dataclass(frozen=True)
class ShardBackupId:
    """Uniquely identifies one shard's backup within one generation.

    String form is ``md_<shard>_<backupId>``; the metadata filename appends
    ``.json``. Shard names are restricted to letters, digits, '.' and '-', so
    both forms parse back unambiguously.
    """

    shard_name: str
    containing_backup_id: BackupId

    def __post_init__(self):
        validate_shard_name(self.shard_name)

    def id_as_string(self) -> str:
        return f"{SHARD_BACKUP_ID_PREFIX}_{self.shard_name}_{self.containing_backup_id.id}"

    def metadata_filename(self) -> str:
        return self.id_as_string() + METADATA_FILENAME_SUFFIX

    @classmethod
    def from_id_string(cls, id_string: str) -> 'ShardBackupId':
        components = id_string.split("_")
        if len(components) != 3 or components[0] != SHARD_BACKUP_ID_PREFIX:
            raise MalformedIdentifierError(f"Unable to parse invalid ShardBackupId: {id_string}")
        # Only the canonical decimal form, so parsing inverts id_as_string()
        id_component = components[2]
        try:
            backup_id = BackupId(int(id_component))
        except ValueError as e:
            raise MalformedIdentifierError(f"Unable to parse invalid ShardBackupId: {id_string}") from e
        if str(backup_id.id) != id_component:
            raise MalformedIdentifierError(f"Unable to parse invalid ShardBackupId: {id_string}")
        return cls(components[1], backup_id)

    @classmethod
    def from_metadata_filename(cls, filename: str) -> 'ShardBackupId':
        if not filename.endswith(METADATA_FILENAME_SUFFIX):
            raise MalformedIdentifierError(
                f"Shard backup metadata filename must end with {METADATA_FILENAME_SUFFIX}: {filename}"
            )
        return cls.from_id_string(filename[:-len(METADATA_FILENAME_SUFFIX)])

    def __str__(self) -> str:
        return self.id_as_string()


class ShardBackupMetadata:
    """Maps each index filename of a shard backup to the blob that holds it.

    A record is built in memory during one shard backup and written once at the
    end; a record read back from the repository is never modified.
    """

    def __init__(self, files: Optional[Dict[str, BackedFile]] = None):
        self._files: Dict[str, BackedFile] = dict(files or {})

    @classmethod
    def empty(cls) -> 'ShardBackupMetadata':
        return cls()

    @classmethod
    async def load(
        cls,
        repository: BaseBackupRepository,
        metadata_dir_uri: str,
        filename: str,
    ) -> 'ShardBackupMetadata':
        """Read a record from the repository.

        Raises:
            RecordNotFoundError: The file does not exist
            RecordCorruptError: The file is not a valid record
            BackendIOError: The repository failed to read it
        """
        uri = repository.resolve(metadata_dir_uri, filename)
        if not await repository.exists(uri):
            raise RecordNotFoundError(uri)

        raw = await repository.read_file(uri)
        try:
            document = ShardBackupMetadataDocument.model_validate_json(raw)
        except ValidationError as e:
            raise RecordCorruptError(uri, str(e)) from e

        for key, backed_file in document.files.items():
            if key != backed_file.original_filename:
                raise RecordCorruptError(
                    uri, f"entry {key!r} describes {backed_file.original_filename!r}"
                )

        logger.debug(f"Loaded shard backup metadata {uri} ({len(document.files)} files)")
        return cls(document.files)

    async def store(
        self,
        repository: BaseBackupRepository,
        metadata_dir_uri: str,
        filename: str,
    ) -> None:
        """Write the record; readers never observe a partially written file."""
        uri = repository.resolve(metadata_dir_uri, filename)
        document = ShardBackupMetadataDocument(files=self._files)
        data = json.dumps(document.model_dump(mode="json"), indent=2).encode("utf-8")
        await repository.write_file(uri, data)
        logger.debug(f"Stored shard backup metadata {uri} ({len(self._files)} files)")

    def get_file(self, filename: str) -> Optional[BackedFile]:
        return self._files.get(filename)

    def add_backed_file(self, backed_file: BackedFile) -> None:
        self._files[backed_file.original_filename] = backed_file

    def add_new_backed_file(self, stored_name: str, original_filename: str, checksum: Checksum) -> BackedFile:
        backed_file = BackedFile(
            stored_name=stored_name,
            original_filename=original_filename,
            checksum=checksum,
        )
        self.add_backed_file(backed_file)
        return backed_file

    def list_original_filenames(self) -> List[str]:
        return list(self._files)

    def list_backed_files(self) -> List[BackedFile]:
        return list(self._files.values())

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, filename: str) -> bool:
        return filename in self._files
