"""JSON snapshot persistence for the notification job store."""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    AuditLogEntry,
    JobStatus,
    NotificationJob,
    utc_now,
)
from infrastructure.notifications.store import InMemoryJobStore

logger = get_module_logger()

INTERRUPTED_ATTEMPT_ERROR = "Dispatch attempt interrupted before completion"


class JsonFileJobStore(InMemoryJobStore):
    """In-memory job store persisted to a JSON snapshot file.

    The snapshot (``{"jobs": [...], "auditLogs": [...]}``, camelCase records)
    is loaded on construction. Writes mark the store dirty; ``flush`` writes
    the snapshot atomically by replacing the file with a fully written
    temporary file in the same directory.

    Attributes:
        path: Snapshot file location
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)
        self._dirty = False
        self._load()

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _on_write(self) -> None:
        self._dirty = True

    def _load(self) -> None:
        if not self.path.exists():
            logger.info("job_store_snapshot_missing", path=str(self.path))
            return

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                "job_store_snapshot_unreadable", path=str(self.path), error=str(e)
            )
            raise

        with self._lock:
            for raw in payload.get("jobs", []):
                job = NotificationJob.model_validate(raw)
                self._jobs[job.id] = job
            for raw in payload.get("auditLogs", []):
                self._audit.append(AuditLogEntry.model_validate(raw))
            self._recover_inflight()

        logger.info(
            "job_store_snapshot_loaded",
            path=str(self.path),
            jobs=len(self._jobs),
            audit_entries=len(self._audit),
        )

    def _recover_inflight(self) -> None:
        """Release jobs persisted mid-attempt (assumes lock is held).

        The interrupted attempt already counts against the budget, so a job
        with budget left is due again immediately and one without is failed.
        """
        now = utc_now()
        for job in list(self._jobs.values()):
            if job.status != JobStatus.PROCESSING:
                continue
            if job.has_budget:
                changes = {"status": JobStatus.RETRYING, "next_attempt_at": now}
            else:
                changes = {"status": JobStatus.FAILED, "failed_at": now}
            changes["last_error"] = INTERRUPTED_ATTEMPT_ERROR
            recovered = self._apply(job, changes)
            logger.warning(
                "job_store_inflight_recovered",
                job_id=job.id,
                attempts=job.attempts,
                status=recovered.status.value,
            )

    def flush(self) -> bool:
        """Write the snapshot if anything changed since the last flush.

        Returns:
            True if a snapshot was written, False if there was nothing to write
        """
        with self._lock:
            if not self._dirty:
                return False
            snapshot = {
                "jobs": [
                    job.model_dump(mode="json", by_alias=True)
                    for job in self._jobs.values()
                ],
                "auditLogs": [
                    entry.model_dump(mode="json", by_alias=True)
                    for entry in self._audit
                ],
            }
            self._write(snapshot)
            self._dirty = False

        logger.debug(
            "job_store_snapshot_flushed",
            path=str(self.path),
            jobs=len(snapshot["jobs"]),
            audit_entries=len(snapshot["auditLogs"]),
        )
        return True

    def _write(self, snapshot: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(snapshot, handle, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
