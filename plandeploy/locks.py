"""
Lock services - named, non-blocking mutual exclusion.

Plan.deploy() takes the lock "deploy_plan_{name}" with try_acquire() and
fails immediately if it is held; there is no waiting or queueing.

Implementations:
- InMemoryLockService: process-local, for tests and single-process use
- FileLockService: one lock file per name, shared by every process that
  points at the same lock directory
"""

import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LockService(ABC):
    """Abstract base class for named locks."""

    @abstractmethod
    def try_acquire(self, name: str) -> bool:
        """
        Acquire a lock without waiting.

        Args:
            name: Lock name

        Returns:
            True if the lock was acquired, False if it is already held
        """
        pass

    @abstractmethod
    def release(self, name: str) -> None:
        """Release a lock. Releasing a lock that is not held does nothing."""
        pass

    @abstractmethod
    def is_held(self, name: str) -> bool:
        pass


class InMemoryLockService(LockService):
    """Thread-safe in-process lock service."""

    def __init__(self):
        self._held: set[str] = set()
        self._mutex = threading.Lock()

    def try_acquire(self, name: str) -> bool:
        with self._mutex:
            if name in self._held:
                return False
            self._held.add(name)
            return True

    def release(self, name: str) -> None:
        with self._mutex:
            if name not in self._held:
                logger.warning(f"Release of lock that is not held: {name}")
                return
            self._held.discard(name)

    def is_held(self, name: str) -> bool:
        with self._mutex:
            return name in self._held


class FileLockService(LockService):
    """
    File-based lock service.

    Each lock is a file created with O_CREAT | O_EXCL, so creation is atomic
    across processes. The file holds the owner's pid:
        lock_dir/
            {sanitized_name}.lock

    A lock whose recorded pid no longer exists on this host is stale (its
    owner crashed) and is taken over by the next try_acquire(). Locks held
    from another host sharing the directory can't be checked this way; remove
    their file by hand if the owner is gone.
    """

    def __init__(self, lock_dir: Path | str):
        self._lock_dir = Path(lock_dir)
        self._lock_dir.mkdir(parents=True, exist_ok=True)

    @property
    def lock_dir(self) -> Path:
        return self._lock_dir

    def _path(self, name: str) -> Path:
        return self._lock_dir / f"{_UNSAFE_CHARS.sub('_', name)}.lock"

    def _create(self, path: Path) -> bool:
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w") as f:
            f.write(f"{os.getpid()}\n")
        return True

    def owner_pid(self, name: str) -> Optional[int]:
        """The pid recorded in a lock file, or None if unreadable."""
        try:
            return int(self._path(name).read_text().strip())
        except (FileNotFoundError, ValueError):
            return None

    def is_stale(self, name: str) -> bool:
        """True if the lock file names a process that is no longer running."""
        pid = self.owner_pid(name)
        if pid is None:
            # Missing, or created but its pid not written yet
            return False
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        except PermissionError:
            # Running, owned by another user
            return False
        return False

    def try_acquire(self, name: str) -> bool:
        path = self._path(name)
        if self._create(path):
            return True
        if not self.is_stale(name):
            return False

        logger.warning(f"Removing stale lock {name} (pid {self.owner_pid(name)} is not running)")
        try:
            path.unlink()
        except FileNotFoundError:
            pass  # another process removed it first; race for the new file below
        return self._create(path)

    def release(self, name: str) -> None:
        try:
            self._path(name).unlink()
        except FileNotFoundError:
            logger.warning(f"Release of lock that is not held: {name}")

    def is_held(self, name: str) -> bool:
        return self._path(name).exists() and not self.is_stale(name)
