"""Backup generation numbering."""

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, List, Optional

TRADITIONAL_BACKUP = -1

BACKUP_PROPS_FILE = "backup.properties"
ZK_STATE_DIR = "zk_state"

_BACKUP_PROPS_ID_PATTERN = re.compile(r"backup_(0|[1-9][0-9]*)\.properties")


@total_ordering
@dataclass(frozen=True)
class BackupId:
    """Identifies one backup generation at a location.

    ``TRADITIONAL_BACKUP`` (-1) marks a legacy, non-generational backup; every
    other id is a non-negative integer allocated once per backup invocation.
    """

    id: int

    def __post_init__(self):
        if self.id < TRADITIONAL_BACKUP:
            raise ValueError(f"Invalid backup id: {self.id}")

    @classmethod
    def traditional_backup(cls) -> 'BackupId':
        return cls(TRADITIONAL_BACKUP)

    @classmethod
    def zero(cls) -> 'BackupId':
        return cls(0)

    @classmethod
    def next_after(cls, latest: Optional['BackupId']) -> 'BackupId':
        """Allocate the generation following ``latest`` (0 when there is none)."""
        if latest is None or latest.id == TRADITIONAL_BACKUP:
            return cls.zero()
        return cls(latest.id + 1)

    @property
    def is_traditional(self) -> bool:
        return self.id == TRADITIONAL_BACKUP

    def __lt__(self, other: 'BackupId') -> bool:
        if not isinstance(other, BackupId):
            return NotImplemented
        return self.id < other.id

    def __str__(self) -> str:
        return str(self.id)


def get_backup_props_name(backup_id: BackupId) -> str:
    """Filename of the top-level properties file of a generation.

    Valid for both incremental and traditional backups.
    """
    if backup_id.is_traditional:
        return BACKUP_PROPS_FILE
    return f"backup_{backup_id.id}.properties"


def get_zk_state_dir(backup_id: BackupId) -> str:
    """Directory name holding the cluster state saved with a generation.

    Valid for both incremental and traditional backups.
    """
    if backup_id.is_traditional:
        return ZK_STATE_DIR
    return f"{ZK_STATE_DIR}_{backup_id.id}/"


def find_all_backup_ids_from_file_listing(file_names: Iterable[str]) -> List[BackupId]:
    """Return the ids of every name that is a generation properties file."""
    result = []
    for name in file_names:
        match = _BACKUP_PROPS_ID_PATTERN.fullmatch(name)
        if match:
            result.append(BackupId(int(match.group(1))))
    return result


def find_most_recent_backup_id_from_file_listing(file_names: Iterable[str]) -> Optional[BackupId]:
    """Return the highest generation found in a listing, or None if there is none."""
    backup_ids = find_all_backup_ids_from_file_listing(file_names)
    if not backup_ids:
        return None
    return max(backup_ids)
