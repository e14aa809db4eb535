"""Tests for backup statistics and MB rounding."""

import pytest

from nano_shardbackup.backup.stats import BackupStats
from nano_shardbackup.base import Checksum
from nano_shardbackup._utils import bytes_to_mb, round_half_up
from tests.utils import MB


def _checksum(size: int) -> Checksum:
    return Checksum(digest=b"\x00" * 16, size=size)


def test_empty_stats():
    stats = BackupStats()
    assert stats.file_count == 0
    assert stats.uploaded_file_count == 0
    assert stats.index_size_mb == 0.0
    assert stats.total_uploaded_mb == 0.0


def test_mixed_uploads_and_skips():
    """Five 20MB files skipped and two 5MB files uploaded."""
    stats = BackupStats()
    for _ in range(5):
        stats.skipped_uploading_file(_checksum(20 * MB))
    for _ in range(2):
        stats.uploaded_file(_checksum(5 * MB))

    assert stats.file_count == 7
    assert stats.uploaded_file_count == 2
    assert stats.index_size == 110 * MB
    assert stats.total_uploaded_bytes == 10 * MB
    assert stats.index_size_mb == 110.0
    assert stats.total_uploaded_mb == 10.0


def test_sizes_rounded_to_three_decimals():
    stats = BackupStats()
    stats.uploaded_file(_checksum(1))
    stats.skipped_uploading_file(_checksum(1536))

    assert stats.total_uploaded_mb == 0.0
    assert stats.index_size_mb == 0.001


@pytest.mark.parametrize("value,expected", [
    (0.0125, 0.013),
    (0.0124, 0.012),
    (2.5005, 2.501),
    (1.0, 1.0),
    (0.0, 0.0),
])
def test_round_half_up(value, expected):
    assert round_half_up(value, 3) == expected


def test_bytes_to_mb():
    assert bytes_to_mb(MB) == 1.0
    assert bytes_to_mb(MB // 2) == 0.5
    assert bytes_to_mb(524) == 0.0
    assert bytes_to_mb(525) == 0.001


def test_repr():
    stats = BackupStats()
    stats.uploaded_file(_checksum(10))
    assert repr(stats) == "BackupStats(files=1, uploaded=1, size=10, uploaded_bytes=10)"
