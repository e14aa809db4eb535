from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Tuple

import xxhash
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .exceptions import BackendIOError

DEFAULT_CHECKSUM_CHUNK_SIZE = 1024 * 1024


class Checksum(BaseModel):
    """Content digest plus byte size of one index file.

    Two checksums are equal only if both digest and size match. This is the sole
    key used to decide whether a previously stored blob can be reused.
    """

    model_config = ConfigDict(frozen=True)

    digest: bytes = Field(..., description="Content digest")
    size: int = Field(..., ge=0, description="File length in bytes")

    @field_validator("digest", mode="before")
    @classmethod
    def _parse_hex_digest(cls, value):
        if isinstance(value, str):
            try:
                return bytes.fromhex(value)
            except ValueError as e:
                raise ValueError(f"digest is not a hex string: {value!r}") from e
        return value

    @field_serializer("digest")
    def _serialize_digest(self, digest: bytes) -> str:
        return digest.hex()

    def __str__(self) -> str:
        return f"{self.digest.hex()}/{self.size}"


@dataclass(frozen=True)
class IndexCommit:
    """An immutable point-in-time view of a shard's index files."""
    generation: int
    file_names: Tuple[str, ...]


class BaseIndexDirectory:
    """Local accessor over the files of one shard's index."""

    def list_all(self) -> List[str]:
        raise NotImplementedError

    def file_exists(self, name: str) -> bool:
        raise NotImplementedError

    def file_length(self, name: str) -> int:
        raise NotImplementedError

    def open_input(self, name: str) -> BinaryIO:
        """Open a file for binary reading. Raises OSError if it is gone."""
        raise NotImplementedError

    def create_output(self, name: str) -> BinaryIO:
        """Open a file for binary writing, truncating any existing content."""
        raise NotImplementedError

    def delete_file(self, name: str) -> None:
        raise NotImplementedError


class BaseIndexCommitPolicy:
    """Hands out reservations on index commits.

    A reserved commit's files must not be removed by background maintenance
    until the reservation is released.
    """

    async def reserve_latest_commit(self) -> Optional[IndexCommit]:
        """Reserve and return the newest commit, or None if the index has none."""
        raise NotImplementedError

    async def release_commit(self, commit: IndexCommit) -> None:
        raise NotImplementedError


@dataclass
class BaseBackupRepository:
    """Storage backend that backups are written to.

    URIs are plain strings whose shape is owned by the implementation. Every I/O
    failure surfaces as BackendIOError; callers do not retry.
    """

    global_config: dict = field(default_factory=dict)

    @property
    def checksum_chunk_size(self) -> int:
        return self.global_config.get("checksum_chunk_size", DEFAULT_CHECKSUM_CHUNK_SIZE)

    def resolve(self, base_uri: str, *children: str) -> str:
        raise NotImplementedError

    async def exists(self, uri: str) -> bool:
        raise NotImplementedError

    async def create_directory(self, uri: str) -> None:
        raise NotImplementedError

    async def list_all(self, uri: str) -> List[str]:
        """List the names of the direct children of a directory URI."""
        raise NotImplementedError

    async def read_file(self, uri: str) -> bytes:
        raise NotImplementedError

    async def write_file(self, uri: str, data: bytes) -> None:
        """Write a whole file so that readers see either the old or the new content."""
        raise NotImplementedError

    async def copy_index_file_from(
        self,
        source_dir: BaseIndexDirectory,
        source_name: str,
        dest_dir_uri: str,
        dest_name: str,
    ) -> None:
        """Upload one local index file into the repository."""
        raise NotImplementedError

    async def copy_index_file_to(
        self,
        source_dir_uri: str,
        source_name: str,
        dest_dir: BaseIndexDirectory,
        dest_name: str,
    ) -> None:
        """Download one repository file into a local index directory."""
        raise NotImplementedError

    async def checksum(self, directory: BaseIndexDirectory, name: str) -> Checksum:
        """Compute the checksum of a local index file by streaming its content."""
        hasher = xxhash.xxh3_128()
        size = 0
        chunk_size = self.checksum_chunk_size
        try:
            with directory.open_input(name) as f:
                for chunk in iter(lambda: f.read(chunk_size), b""):
                    hasher.update(chunk)
                    size += len(chunk)
        except OSError as e:
            raise BackendIOError(f"Unable to checksum index file {name}: {e}", uri=name) from e
        return Checksum(digest=hasher.digest(), size=size)
