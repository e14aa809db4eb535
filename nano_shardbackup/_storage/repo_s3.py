"""Amazon S3 backup repository."""

from dataclasses import dataclass
from typing import List, Tuple

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from ..base import BaseBackupRepository, BaseIndexDirectory
from ..exceptions import BackendIOError
from .._utils import logger

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def split_s3_uri(uri: str) -> Tuple[str, str]:
    """Split ``s3://bucket/some/key`` into ``("bucket", "some/key")``."""
    if not uri.startswith("s3://"):
        raise ValueError(f"Not an s3 URI: {uri}")
    bucket, _, key = uri[len("s3://"):].partition("/")
    if not bucket:
        raise ValueError(f"s3 URI has no bucket: {uri}")
    return bucket, key


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


@dataclass
class S3BackupRepository(BaseBackupRepository):
    """Backup repository stored in an S3 bucket.

    URIs have the form ``s3://bucket/prefix/name``. Directories are emulated with
    zero-byte ``prefix/`` marker objects. Connection-level botocore errors are
    retried a bounded number of times before surfacing as BackendIOError.
    """

    def __post_init__(self):
        self._region = self.global_config.get("s3_region", "us-east-1")
        self._endpoint_url = self.global_config.get("s3_endpoint_url", None)
        self._max_attempts = self.global_config.get("s3_max_attempts", 3)
        self._session = aioboto3.Session()

        # Cache retry decorator to avoid recreation overhead
        self._retry_decorator = retry(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(BotoCoreError),
            reraise=True,
        )

        logger.info(f"Initialized S3 repository (region={self._region}, endpoint={self._endpoint_url})")

    def _client(self):
        return self._session.client(
            "s3",
            region_name=self._region,
            endpoint_url=self._endpoint_url,
        )

    async def _call(self, operation: str, uri: str, func):
        retried_func = self._retry_decorator(func)
        try:
            return await retried_func()
        except (BotoCoreError, ClientError) as e:
            raise BackendIOError(f"S3 {operation} failed for {uri}: {e}", uri=uri) from e

    def resolve(self, base_uri: str, *children: str) -> str:
        parts = [base_uri.rstrip("/")]
        parts.extend(child.strip("/") for child in children if child.strip("/"))
        resolved = "/".join(parts)
        # Keep a trailing slash on the last child, it marks a directory name
        if children and children[-1].endswith("/"):
            resolved += "/"
        return resolved

    async def exists(self, uri: str) -> bool:
        bucket, key = split_s3_uri(uri)

        async def _exists():
            async with self._client() as s3:
                if not key:
                    try:
                        await s3.head_bucket(Bucket=bucket)
                        return True
                    except ClientError as e:
                        if _is_not_found(e):
                            return False
                        raise
                try:
                    await s3.head_object(Bucket=bucket, Key=key)
                    return True
                except ClientError as e:
                    if not _is_not_found(e):
                        raise
                response = await s3.list_objects_v2(
                    Bucket=bucket, Prefix=key.rstrip("/") + "/", MaxKeys=1
                )
                return response.get("KeyCount", 0) > 0

        return await self._call("exists", uri, _exists)

    async def create_directory(self, uri: str) -> None:
        bucket, key = split_s3_uri(uri)
        if not key:
            return

        async def _create():
            async with self._client() as s3:
                await s3.put_object(Bucket=bucket, Key=key.rstrip("/") + "/", Body=b"")

        await self._call("create_directory", uri, _create)

    async def list_all(self, uri: str) -> List[str]:
        bucket, key = split_s3_uri(uri)
        prefix = key.rstrip("/") + "/" if key else ""

        async def _list():
            names = []
            async with self._client() as s3:
                kwargs = {"Bucket": bucket, "Prefix": prefix, "Delimiter": "/"}
                while True:
                    response = await s3.list_objects_v2(**kwargs)
                    for obj in response.get("Contents", []):
                        name = obj["Key"][len(prefix):]
                        if name:
                            names.append(name)
                    for common in response.get("CommonPrefixes", []):
                        names.append(common["Prefix"][len(prefix):].rstrip("/"))
                    if not response.get("IsTruncated"):
                        break
                    kwargs["ContinuationToken"] = response["NextContinuationToken"]
            return sorted(names)

        return await self._call("list", uri, _list)

    async def read_file(self, uri: str) -> bytes:
        bucket, key = split_s3_uri(uri)

        async def _read():
            async with self._client() as s3:
                response = await s3.get_object(Bucket=bucket, Key=key)
                async with response["Body"] as stream:
                    return await stream.read()

        return await self._call("read", uri, _read)

    async def write_file(self, uri: str, data: bytes) -> None:
        bucket, key = split_s3_uri(uri)

        # A single PUT is atomic: readers see the old object or the new one
        async def _write():
            async with self._client() as s3:
                await s3.put_object(Bucket=bucket, Key=key, Body=data)

        await self._call("write", uri, _write)
        logger.debug(f"Wrote {len(data):,} bytes to {uri}")

    async def copy_index_file_from(
        self,
        source_dir: BaseIndexDirectory,
        source_name: str,
        dest_dir_uri: str,
        dest_name: str,
    ) -> None:
        dest_uri = self.resolve(dest_dir_uri, dest_name)
        bucket, key = split_s3_uri(dest_uri)

        async def _upload():
            async with self._client() as s3:
                with source_dir.open_input(source_name) as src:
                    await s3.upload_fileobj(src, bucket, key)

        try:
            await self._call("upload", dest_uri, _upload)
        except OSError as e:
            raise BackendIOError(
                f"Unable to read index file {source_name} for upload: {e}", uri=dest_uri
            ) from e

    async def copy_index_file_to(
        self,
        source_dir_uri: str,
        source_name: str,
        dest_dir: BaseIndexDirectory,
        dest_name: str,
    ) -> None:
        source_uri = self.resolve(source_dir_uri, source_name)
        bucket, key = split_s3_uri(source_uri)
        chunk_size = self.checksum_chunk_size

        async def _download():
            async with self._client() as s3:
                response = await s3.get_object(Bucket=bucket, Key=key)
                async with response["Body"] as stream:
                    with dest_dir.create_output(dest_name) as dst:
                        while True:
                            chunk = await stream.read(chunk_size)
                            if not chunk:
                                break
                            dst.write(chunk)

        try:
            await self._call("download", source_uri, _download)
        except OSError as e:
            raise BackendIOError(
                f"Unable to write index file {dest_name} from {source_uri}: {e}", uri=source_uri
            ) from e
