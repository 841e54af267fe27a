from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from workflows.io.config_store import get_db_path

__workflow_role__ = "Database"


LOCK_TIMEOUT = 10.0
LOCK_SLEEP = 0.05
STALE_LOCK_AGE_SECONDS = 300  # Consider lock stale if file is older than 5 minutes

RECORD_STATUSES = ("waiting", "completed", "cancelled")

logger = logging.getLogger(__name__)

# One asyncio lock per conversation so two turns never interleave
_TURN_LOCKS: Dict[str, asyncio.Lock] = {}


def _is_process_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)  # Signal 0 = check if process exists
        return True
    except OSError:
        return False


def _cleanup_stale_lock(lock_path: Path) -> bool:
    """
    Remove stale lock file if the owning process is dead.

    Returns True if a stale lock was removed, False otherwise.
    """
    if not lock_path.exists():
        return False

    try:
        content = lock_path.read_text().strip()
        if not content:
            # A brand new lock may not have its PID written yet
            if time.time() - lock_path.stat().st_mtime < 1.0:
                return False
            lock_path.unlink()
            logger.warning("[FORM][DB] Removed empty lock file: %s", lock_path)
            return True

        try:
            pid = int(content)
        except ValueError:
            lock_path.unlink()
            logger.warning("[FORM][DB] Removed lock file with invalid PID content: %s", lock_path)
            return True

        if not _is_process_running(pid):
            lock_path.unlink()
            logger.warning("[FORM][DB] Removed stale lock file (PID %d is dead): %s", pid, lock_path)
            return True

        # PID may have been recycled
        file_age = time.time() - lock_path.stat().st_mtime
        if file_age > STALE_LOCK_AGE_SECONDS:
            lock_path.unlink()
            logger.warning("[FORM][DB] Removed stale lock file (age %.0fs): %s", file_age, lock_path)
            return True

    except OSError as e:
        logger.debug("[FORM][DB] Could not check/cleanup stale lock %s: %s", lock_path, e)

    return False


class FileLock:
    """Coarse-grained filesystem lock guarding the JSON document."""

    def __init__(self, path: Path, timeout: float = LOCK_TIMEOUT, sleep: float = LOCK_SLEEP) -> None:
        self.path = path
        self.timeout = timeout
        self.sleep = sleep
        self.fd: Optional[int] = None

    def acquire(self) -> None:
        """Block until the lock file can be created or raise on timeout."""
        deadline = time.time() + self.timeout
        stale_check_done = False

        while True:
            try:
                self.fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.write(self.fd, str(os.getpid()).encode("utf-8"))
                return
            except FileExistsError:
                if not stale_check_done:
                    stale_check_done = True
                    if _cleanup_stale_lock(self.path):
                        continue
                if time.time() >= deadline:
                    raise TimeoutError(f"Could not acquire lock {self.path}")
                time.sleep(self.sleep)

    def release(self) -> None:
        if self.fd is not None:
            os.close(self.fd)
            self.fd = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def get_default_db() -> Dict[str, Any]:
    """Baseline document for a clean store."""
    return {"conversations": {}}


def lock_path_for(path: Path) -> Path:
    """Sibling lockfile path for a JSON resource."""
    path = Path(path)
    return path.with_name(f".{path.name}.lock")


def _read(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return get_default_db()
    with path.open("r", encoding="utf-8") as fh:
        db = json.load(fh)
    if not isinstance(db.get("conversations"), dict):
        db["conversations"] = {}
    for record in db["conversations"].values():
        ensure_record_defaults(record)
    return db


def _write(db: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as fh:
            json.dump({"conversations": db.get("conversations", {})}, fh, indent=2, ensure_ascii=False)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def load_db(path: Path) -> Dict[str, Any]:
    """Load and normalise the conversation document from disk."""
    path = Path(path)
    with FileLock(lock_path_for(path)):
        return _read(path)


def save_db(db: Dict[str, Any], path: Path) -> None:
    """Persist the document atomically (temp file + fsync + rename)."""
    path = Path(path)
    with FileLock(lock_path_for(path)):
        _write(db, path)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def new_record(form_id: str) -> Dict[str, Any]:
    now = _now()
    return {
        "form_id": form_id,
        "values": {},
        "form_state": None,
        "status": "waiting",
        "transcript": [],
        "activity_log": [],
        "created_at": now,
        "updated_at": now,
    }


def ensure_record_defaults(record: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys missing from records written by older versions."""
    record.setdefault("form_id", "")
    record.setdefault("values", {})
    record.setdefault("form_state", None)
    if record.get("status") not in RECORD_STATUSES:
        record["status"] = "waiting"
    record.setdefault("transcript", [])
    record.setdefault("activity_log", [])
    record.setdefault("created_at", _now())
    record.setdefault("updated_at", record["created_at"])
    return record


def append_transcript(record: Dict[str, Any], role: str, text: str) -> None:
    record["transcript"].append({"role": role, "text": text, "ts": _now()})


class ConversationStore:
    """JSON-file store for conversation records.

    The path is resolved on first use so FORM_DB_PATH can be patched in
    tests. Every write is a locked read-modify-write of the whole document.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else None

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else get_db_path()

    def turn_lock(self, conversation_id: str) -> asyncio.Lock:
        lock = _TURN_LOCKS.get(conversation_id)
        if lock is None:
            lock = _TURN_LOCKS[conversation_id] = asyncio.Lock()
        return lock

    def release_turn_lock(self, conversation_id: str) -> None:
        """Forget the turn lock of a conversation that takes no more turns."""
        _TURN_LOCKS.pop(conversation_id, None)

    def get(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        return load_db(self.path)["conversations"].get(conversation_id)

    def list_ids(self) -> List[str]:
        return list(load_db(self.path)["conversations"])

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def put(self, conversation_id: str, record: Dict[str, Any]) -> None:
        path = self.path
        record["updated_at"] = _now()
        with FileLock(lock_path_for(path)):
            db = _read(path)
            db["conversations"][conversation_id] = record
            _write(db, path)
        logger.debug("[FORM][DB] Saved conversation %s status=%s", conversation_id, record.get("status"))


__all__ = [
    "FileLock",
    "ConversationStore",
    "get_default_db",
    "lock_path_for",
    "load_db",
    "save_db",
    "new_record",
    "ensure_record_defaults",
    "append_transcript",
]
