"""Persistent state backing the generation task's up-to-date check."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from .errors import StateStoreError

_STATE_FILENAME = "task_state.json"
_STATE_VERSION = 1


def hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


@dataclass
class TaskState:
    """Fingerprints recorded by the last successful generation run."""

    inputs: Optional[str] = None
    outputs: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, Dict[str, object]] = field(default_factory=dict)


class TaskStateStore:
    """Loads and persists TaskState; unreadable or stale payloads act as empty."""

    def __init__(self, state_dir: Path) -> None:
        self.state_dir = Path(state_dir)
        self.path = self.state_dir / _STATE_FILENAME

    def load(self) -> TaskState:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return TaskState()
        except (OSError, ValueError):
            return TaskState()

        if not isinstance(payload, dict) or payload.get("version") != _STATE_VERSION:
            return TaskState()

        inputs = payload.get("inputs")
        outputs = payload.get("outputs")
        files = payload.get("files")
        return TaskState(
            inputs=inputs if isinstance(inputs, str) else None,
            outputs={
                key: value
                for key, value in (outputs or {}).items()
                if isinstance(key, str) and isinstance(value, str)
            }
            if isinstance(outputs, dict)
            else {},
            files=_valid_file_entries(files),
        )

    def store(self, state: TaskState) -> None:
        """Persist ``state``; filesystem failures surface as StateStoreError."""
        payload = {
            "version": _STATE_VERSION,
            "inputs": state.inputs,
            "outputs": state.outputs,
            "files": state.files,
        }
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise StateStoreError(f"Cannot record task state in {self.path}: {exc}") from exc

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class InputHasher:
    """Hashes input files, reusing cached digests for unchanged size and mtime."""

    def __init__(self, cached: Mapping[str, Dict[str, object]] | None = None) -> None:
        self._cached = dict(cached or {})
        self.entries: Dict[str, Dict[str, object]] = {}

    def digest(self, key: str, path: Path) -> str:
        stat_result = path.stat()
        size = stat_result.st_size
        mtime_ns = stat_result.st_mtime_ns

        cached = self._cached.get(key)
        if cached and cached.get("size") == size and cached.get("mtime_ns") == mtime_ns:
            file_hash = str(cached["hash"])
        else:
            file_hash = hash_file(path)

        self.entries[key] = {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}
        return file_hash


def fingerprint(values: Mapping[str, object], files: Iterable[tuple[str, str]]) -> str:
    """Combine configuration values and (name, hash) pairs into one digest."""
    payload = {
        "values": values,
        "files": sorted(files),
    }
    encoded = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _valid_file_entries(files: object) -> Dict[str, Dict[str, object]]:
    if not isinstance(files, dict):
        return {}
    valid: Dict[str, Dict[str, object]] = {}
    for rel_path, entry in files.items():
        if not isinstance(entry, dict):
            continue
        size = entry.get("size")
        mtime_ns = entry.get("mtime_ns")
        file_hash = entry.get("hash")
        if (
            isinstance(rel_path, str)
            and isinstance(size, int)
            and isinstance(mtime_ns, int)
            and isinstance(file_hash, str)
        ):
            valid[rel_path] = {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}
    return valid


__all__ = ["InputHasher", "TaskState", "TaskStateStore", "fingerprint", "hash_file"]
