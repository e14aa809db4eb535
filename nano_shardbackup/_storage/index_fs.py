"""Filesystem-backed index directory and commit reservation policy."""

import os
import threading
from typing import BinaryIO, Dict, Iterable, List, Optional

from ..base import BaseIndexCommitPolicy, BaseIndexDirectory, IndexCommit
from .._utils import logger


class FSIndexDirectory(BaseIndexDirectory):
    """Index directory backed by a plain local directory (flat, no subfolders)."""

    def __init__(self, path: str, create: bool = True):
        self.path = path
        if create:
            os.makedirs(path, exist_ok=True)

    def _file_path(self, name: str) -> str:
        if os.sep in name or (os.altsep and os.altsep in name) or name in ("", ".", ".."):
            raise ValueError(f"Invalid index file name: {name!r}")
        return os.path.join(self.path, name)

    def list_all(self) -> List[str]:
        return sorted(
            entry for entry in os.listdir(self.path)
            if os.path.isfile(os.path.join(self.path, entry))
        )

    def file_exists(self, name: str) -> bool:
        return os.path.isfile(self._file_path(name))

    def file_length(self, name: str) -> int:
        return os.path.getsize(self._file_path(name))

    def open_input(self, name: str) -> BinaryIO:
        return open(self._file_path(name), "rb")

    def create_output(self, name: str) -> BinaryIO:
        return open(self._file_path(name), "wb")

    def delete_file(self, name: str) -> None:
        os.remove(self._file_path(name))

    def __repr__(self) -> str:
        return f"FSIndexDirectory({self.path!r})"


class FSIndexCommitPolicy(BaseIndexCommitPolicy):
    """In-process commit registry over an FSIndexDirectory.

    Commits are recorded with ``commit()``. Reservations are counted per
    generation; ``purge_unreserved()`` plays the role of background merge
    cleanup and deletes files that only superseded, unreserved commits use.
    """

    def __init__(self, directory: FSIndexDirectory):
        self.directory = directory
        self._commits: Dict[int, IndexCommit] = {}
        self._reservations: Dict[int, int] = {}
        self._next_generation = 1
        self._lock = threading.Lock()

    def commit(self, file_names: Optional[Iterable[str]] = None) -> IndexCommit:
        """Record a new commit over ``file_names`` (default: every file present)."""
        names = tuple(file_names) if file_names is not None else tuple(self.directory.list_all())
        missing = [name for name in names if not self.directory.file_exists(name)]
        if missing:
            raise ValueError(f"Cannot commit missing index files: {missing}")

        with self._lock:
            commit = IndexCommit(generation=self._next_generation, file_names=names)
            self._commits[commit.generation] = commit
            self._next_generation += 1

        logger.debug(f"Recorded index commit generation={commit.generation} ({len(names)} files)")
        return commit

    @property
    def latest_commit(self) -> Optional[IndexCommit]:
        with self._lock:
            if not self._commits:
                return None
            return self._commits[max(self._commits)]

    async def reserve_latest_commit(self) -> Optional[IndexCommit]:
        with self._lock:
            if not self._commits:
                return None
            commit = self._commits[max(self._commits)]
            self._reservations[commit.generation] = self._reservations.get(commit.generation, 0) + 1
        return commit

    async def release_commit(self, commit: IndexCommit) -> None:
        with self._lock:
            count = self._reservations.get(commit.generation, 0)
            if count <= 0:
                raise ValueError(f"Commit generation {commit.generation} is not reserved")
            if count == 1:
                del self._reservations[commit.generation]
            else:
                self._reservations[commit.generation] = count - 1

    def reservation_count(self, generation: int) -> int:
        with self._lock:
            return self._reservations.get(generation, 0)

    def purge_unreserved(self) -> List[str]:
        """Drop superseded unreserved commits and delete files no live commit uses.

        Returns the names of deleted files.
        """
        with self._lock:
            if not self._commits:
                return []
            latest = max(self._commits)
            dropped = [
                gen for gen in self._commits
                if gen != latest and self._reservations.get(gen, 0) == 0
            ]
            candidates = set()
            for gen in dropped:
                candidates.update(self._commits.pop(gen).file_names)
            live = set()
            for commit in self._commits.values():
                live.update(commit.file_names)

        deleted = []
        for name in sorted(candidates - live):
            if self.directory.file_exists(name):
                self.directory.delete_file(name)
                deleted.append(name)
        if deleted:
            logger.debug(f"Purged {len(deleted)} unreferenced index files: {deleted}")
        return deleted
