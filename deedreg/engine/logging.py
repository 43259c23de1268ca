"""
DeedReg Audit Trail — JSON-lines record of registry changes and denials.

Streams:
    documents    — registered / updated / transferred / tagged / archived / deleted
    permissions  — granted / revoked
    denials      — every authorization failure, with its error code
    maintenance  — administrator checks and security locks

Layout: {log_dir}/{stream}/{YYYY-MM-DD}.jsonl

The *_event helpers stamp an entry with the caller's ExecutionContext.
audit() hands it to a bounded queue drained by one writer thread, so an
operation never waits on disk. Until init_audit_log() runs, audit() drops
entries.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

from deedreg.engine.context import ExecutionContext
from deedreg.engine.errors import DeedRegError

logger = logging.getLogger("deedreg.engine.logging")

AUDIT_STREAMS = ("documents", "permissions", "denials", "maintenance")


@dataclass(frozen=True)
class AuditEntry:
    """One audit line and the stream it is filed under."""

    stream: str
    payload: Dict[str, Any]

    def __post_init__(self) -> None:
        if self.stream not in AUDIT_STREAMS:
            raise ValueError(f"unknown audit stream '{self.stream}'")

    def to_line(self) -> str:
        return json.dumps(self.payload, default=str, separators=(",", ":")) + "\n"


class AuditWriter:
    """Appends entries to one file per stream per day."""

    def __init__(self, log_dir: str):
        self._root = Path(log_dir)
        self._lock = threading.Lock()
        for stream in AUDIT_STREAMS:
            (self._root / stream).mkdir(parents=True, exist_ok=True)

    def path_for(self, stream: str, day: Optional[date] = None) -> Path:
        return self._root / stream / f"{(day or date.today()).isoformat()}.jsonl"

    def append(self, entries: List[AuditEntry]) -> None:
        by_path: Dict[Path, List[str]] = defaultdict(list)
        for entry in entries:
            by_path[self.path_for(entry.stream)].append(entry.to_line())
        with self._lock:
            for path, lines in by_path.items():
                with open(path, "a", encoding="utf-8") as f:
                    f.writelines(lines)

    def read(self, stream: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Entries of `stream` for `day` (default today), oldest first."""
        path = self.path_for(stream, day)
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning(f"Skipping unreadable audit line {number} in {path}")
        return entries


class AuditQueue:
    """
    Bounded queue drained by a single writer thread.

    put() never blocks: a full queue drops the entry and counts it in
    `dropped`. close() stops the thread and writes whatever is left.
    """

    def __init__(
        self,
        writer: AuditWriter,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._writer = writer
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._queue: Queue[AuditEntry] = Queue(maxsize=max_queue_size)
        self._closing = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.dropped = 0

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="deedreg-audit-writer", daemon=True)
        self._thread.start()

    def put(self, entry: AuditEntry) -> bool:
        try:
            self._queue.put_nowait(entry)
        except Full:
            self.dropped += 1
            return False
        return True

    def close(self, timeout: float = 5.0) -> None:
        self._closing.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        while True:
            batch = self._take(wait=False)
            if not batch:
                break
            self._write(batch)
        if self.dropped:
            logger.warning(f"Audit queue closed after dropping {self.dropped} entries")

    def _run(self) -> None:
        while not self._closing.is_set():
            self._write(self._take(wait=True))

    def _take(self, wait: bool) -> List[AuditEntry]:
        """Up to one batch. With wait=True, waits one flush interval for the first entry."""
        batch: List[AuditEntry] = []
        try:
            batch.append(self._queue.get(timeout=self._interval) if wait else self._queue.get_nowait())
            while len(batch) < self._batch_size:
                batch.append(self._queue.get_nowait())
        except Empty:
            pass
        return batch

    def _write(self, batch: List[AuditEntry]) -> None:
        if not batch:
            return
        try:
            self._writer.append(batch)
        except OSError as exc:
            logger.error(f"Audit write failed, {len(batch)} entries lost: {exc}")


# ---------------------------------------------------------------------------
# Entry builders
# ---------------------------------------------------------------------------

def _stamp(event: str, ctx: ExecutionContext, level: str = "INFO") -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    payload.update(ctx.to_dict())
    return payload


def document_event(action: str, ctx: ExecutionContext, doc_id: int, **details: Any) -> AuditEntry:
    """A successful document mutation. Empty details are left out."""
    payload = _stamp(f"document_{action}", ctx)
    payload["doc_id"] = doc_id
    payload.update({k: v for k, v in details.items() if v})
    return AuditEntry("documents", payload)


def permission_event(action: str, ctx: ExecutionContext, doc_id: int, viewer: str) -> AuditEntry:
    payload = _stamp(f"permission_{action}", ctx)
    payload.update(doc_id=doc_id, viewer=viewer)
    return AuditEntry("permissions", payload)


def denial_event(error: DeedRegError, ctx: ExecutionContext) -> AuditEntry:
    """An authorization failure about to be raised to the caller."""
    payload = _stamp("access_denied", ctx, level="WARNING")
    payload.update(operation=error.operation, error_code=error.error_code, doc_id=error.doc_id)
    return AuditEntry("denials", payload)


def maintenance_event(event: str, ctx: ExecutionContext, **details: Any) -> AuditEntry:
    payload = _stamp(event, ctx)
    payload.update(details)
    return AuditEntry("maintenance", payload)


# ---------------------------------------------------------------------------
# Process-wide audit queue
# ---------------------------------------------------------------------------

_audit_queue: Optional[AuditQueue] = None


def init_audit_log(
    log_dir: str,
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AuditQueue:
    """Start the audit queue writing under `log_dir`, closing any previous one."""
    global _audit_queue
    if _audit_queue is not None:
        _audit_queue.close()
    _audit_queue = AuditQueue(
        AuditWriter(log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _audit_queue.start()
    logger.info(f"Audit trail writing to {log_dir}")
    return _audit_queue


def audit(entry: AuditEntry) -> bool:
    """Queue `entry`. Returns False if it was dropped (no queue, or queue full)."""
    if _audit_queue is None:
        return False
    return _audit_queue.put(entry)


def shutdown_audit_log() -> None:
    """Flush and stop the audit queue."""
    global _audit_queue
    if _audit_queue is not None:
        _audit_queue.close()
        _audit_queue = None
