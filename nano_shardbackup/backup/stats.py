from ..base import Checksum
from .._utils import bytes_to_mb


class BackupStats:
    """Running totals over the copy-or-skip decisions of one shard backup."""

    def __init__(self):
        self.file_count = 0
        self.uploaded_file_count = 0
        self.index_size = 0
        self.total_uploaded_bytes = 0

    def uploaded_file(self, checksum: Checksum) -> None:
        self.file_count += 1
        self.uploaded_file_count += 1
        self.index_size += checksum.size
        self.total_uploaded_bytes += checksum.size

    def skipped_uploading_file(self, checksum: Checksum) -> None:
        self.file_count += 1
        self.index_size += checksum.size

    @property
    def index_size_mb(self) -> float:
        return bytes_to_mb(self.index_size)

    @property
    def total_uploaded_mb(self) -> float:
        return bytes_to_mb(self.total_uploaded_bytes)

    def __repr__(self) -> str:
        return (
            f"BackupStats(files={self.file_count}, uploaded={self.uploaded_file_count}, "
            f"size={self.index_size}, uploaded_bytes={self.total_uploaded_bytes})"
        )
