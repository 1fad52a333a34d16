"""
Deployment log - append-only status history per deployment.

start() creates a DeploymentRecord with a new ULID and its first status;
record() appends further statuses keyed by that id. Records are never
rewritten except by appending.

Storage backends:
- In-memory (for testing)
- File-based (one JSON document per deployment)
"""

import json
import secrets
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from plandeploy.schemas import DeploymentRecord, DeployStatus, StatusEntry, format_error


# Crockford's Base32 (no I, L, O, U)
_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def _base32(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        chars.append(_ULID_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def generate_ulid(timestamp_ms: Optional[int] = None) -> str:
    """
    Generate a ULID: 10 chars of millisecond timestamp, then 16 chars of
    randomness. Ids created in later milliseconds sort after earlier ones.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return _base32(timestamp_ms, 10) + _base32(secrets.randbits(80), 16)


class UnknownDeploymentError(KeyError):
    """Raised when recording a status for a deployment that was never started."""
    pass


class DeploymentLog(ABC):
    """Abstract base class for deployment logs."""

    @abstractmethod
    def start(self, plan_name: str, status: DeployStatus = DeployStatus.STARTED) -> str:
        """
        Start a new deployment record.

        Args:
            plan_name: The plan being deployed
            status: Initial status

        Returns:
            The new deployment id
        """
        pass

    @abstractmethod
    def record(
        self,
        deployment_id: str,
        status: DeployStatus,
        error: Optional[BaseException] = None,
    ) -> None:
        """
        Append a status to a deployment record.

        Raises:
            UnknownDeploymentError: If deployment_id was never started
        """
        pass

    @abstractmethod
    def get(self, deployment_id: str) -> Optional[DeploymentRecord]:
        pass

    @abstractmethod
    def list(self, plan_name: Optional[str] = None) -> list[DeploymentRecord]:
        """List records, oldest first, optionally for one plan."""
        pass

    @staticmethod
    def _entry(status: DeployStatus, error: Optional[BaseException]) -> StatusEntry:
        return StatusEntry(
            status=DeployStatus(status),
            error=format_error(error) if error is not None else None,
        )


class InMemoryDeploymentLog(DeploymentLog):
    """
    In-memory implementation of DeploymentLog for testing.

    All data is lost when the instance is garbage collected.
    """

    def __init__(self):
        self._records: dict[str, DeploymentRecord] = {}

    def start(self, plan_name: str, status: DeployStatus = DeployStatus.STARTED) -> str:
        deployment_id = generate_ulid()
        self._records[deployment_id] = DeploymentRecord(
            deployment_id=deployment_id,
            plan_name=plan_name,
            entries=[self._entry(status, None)],
        )
        return deployment_id

    def record(
        self,
        deployment_id: str,
        status: DeployStatus,
        error: Optional[BaseException] = None,
    ) -> None:
        if deployment_id not in self._records:
            raise UnknownDeploymentError(deployment_id)
        self._records[deployment_id].entries.append(self._entry(status, error))

    def get(self, deployment_id: str) -> Optional[DeploymentRecord]:
        return self._records.get(deployment_id)

    def list(self, plan_name: Optional[str] = None) -> list[DeploymentRecord]:
        return [
            r for r in self._records.values()
            if plan_name is None or r.plan_name == plan_name
        ]

    def clear(self) -> None:
        """Clear all stored data (for testing)."""
        self._records.clear()


class FileDeploymentLog(DeploymentLog):
    """
    File-based implementation of DeploymentLog.

    Stores one JSON document per deployment:
        log_dir/
            {deployment_id}.json
    """

    def __init__(self, log_dir: Path | str):
        self._log_dir = Path(log_dir)
        self._log_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, deployment_id: str) -> Path:
        return self._log_dir / f"{deployment_id}.json"

    def _write(self, record: DeploymentRecord) -> None:
        with open(self._path(record.deployment_id), "w") as f:
            json.dump(record.to_dict(), f, indent=2)

    def start(self, plan_name: str, status: DeployStatus = DeployStatus.STARTED) -> str:
        deployment_id = generate_ulid()
        self._write(DeploymentRecord(
            deployment_id=deployment_id,
            plan_name=plan_name,
            entries=[self._entry(status, None)],
        ))
        return deployment_id

    def record(
        self,
        deployment_id: str,
        status: DeployStatus,
        error: Optional[BaseException] = None,
    ) -> None:
        record = self.get(deployment_id)
        if record is None:
            raise UnknownDeploymentError(deployment_id)
        record.entries.append(self._entry(status, error))
        self._write(record)

    def get(self, deployment_id: str) -> Optional[DeploymentRecord]:
        path = self._path(deployment_id)
        if not path.exists():
            return None
        with open(path) as f:
            data = json.load(f)
        return DeploymentRecord.from_dict(data)

    def list(self, plan_name: Optional[str] = None) -> list[DeploymentRecord]:
        # ULIDs sort by creation time
        records = []
        for path in sorted(self._log_dir.glob("*.json")):
            record = self.get(path.stem)
            if record is not None and (plan_name is None or record.plan_name == plan_name):
                records.append(record)
        return records
