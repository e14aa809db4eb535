"""Local filesystem backup repository."""

import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import List

from ..base import BaseBackupRepository, BaseIndexDirectory
from ..exceptions import BackendIOError
from .._utils import logger


@dataclass
class LocalBackupRepository(BaseBackupRepository):
    """Backup repository rooted on a local or mounted filesystem.

    URIs are filesystem paths.
    """

    def resolve(self, base_uri: str, *children: str) -> str:
        return os.path.join(base_uri, *children)

    async def exists(self, uri: str) -> bool:
        return os.path.exists(uri)

    async def create_directory(self, uri: str) -> None:
        try:
            os.makedirs(uri, exist_ok=True)
        except OSError as e:
            raise BackendIOError(f"Unable to create directory {uri}: {e}", uri=uri) from e

    async def list_all(self, uri: str) -> List[str]:
        try:
            return sorted(os.listdir(uri))
        except OSError as e:
            raise BackendIOError(f"Unable to list {uri}: {e}", uri=uri) from e

    async def read_file(self, uri: str) -> bytes:
        try:
            with open(uri, "rb") as f:
                return f.read()
        except OSError as e:
            raise BackendIOError(f"Unable to read {uri}: {e}", uri=uri) from e

    async def write_file(self, uri: str, data: bytes) -> None:
        # Readers only ever observe a complete file: write a sibling temp file and
        # rename it over the target.
        directory = os.path.dirname(uri) or "."
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=directory, prefix=".tmp-", suffix=".partial", delete=False
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, uri)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise BackendIOError(f"Unable to write {uri}: {e}", uri=uri) from e
        logger.debug(f"Wrote {len(data):,} bytes to {uri}")

    async def copy_index_file_from(
        self,
        source_dir: BaseIndexDirectory,
        source_name: str,
        dest_dir_uri: str,
        dest_name: str,
    ) -> None:
        dest_path = self.resolve(dest_dir_uri, dest_name)
        created = False
        try:
            with source_dir.open_input(source_name) as src:
                # "x" mode: stored blobs are never overwritten
                with open(dest_path, "xb") as dst:
                    created = True
                    shutil.copyfileobj(src, dst)
        except OSError as e:
            if created and os.path.exists(dest_path):
                os.remove(dest_path)
            raise BackendIOError(
                f"Unable to copy index file {source_name} to {dest_path}: {e}", uri=dest_path
            ) from e

    async def copy_index_file_to(
        self,
        source_dir_uri: str,
        source_name: str,
        dest_dir: BaseIndexDirectory,
        dest_name: str,
    ) -> None:
        source_path = self.resolve(source_dir_uri, source_name)
        try:
            with open(source_path, "rb") as src:
                with dest_dir.create_output(dest_name) as dst:
                    shutil.copyfileobj(src, dst)
        except OSError as e:
            raise BackendIOError(
                f"Unable to copy {source_path} to index file {dest_name}: {e}", uri=source_path
            ) from e
