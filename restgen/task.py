"""Generation task: scan for entities and synthesize their repositories."""

from __future__ import annotations

import os
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .config import GenerationRequest
from .errors import (
    ConfigError,
    NameCollisionError,
    OutputLockedError,
    RestgenIOError,
    SourceRootError,
    WriteError,
)
from .logging import get_logger
from .models import EntityDescriptor, RunState, RunSummary
from .reporting import Reporter
from .scanner import EntityScanner, iter_source_files
from .state import InputHasher, TaskState, TaskStateStore, fingerprint, hash_file
from .symbols import TypeUniverse
from .synthesizer import RepositorySynthesizer, SynthesisResult


@dataclass(frozen=True)
class DeclaredInputs:
    """Everything whose change must trigger a new run."""

    files: Tuple[Path, ...]
    values: Dict[str, object]


class GenerationTask:
    """Runs one full scan and synthesis pass for a GenerationRequest."""

    def __init__(
        self,
        request: GenerationRequest,
        *,
        state_dir: Path | None = None,
        reporter: Reporter | None = None,
        synthesizer: RepositorySynthesizer | None = None,
    ) -> None:
        self.request = request
        self.reporter = reporter or Reporter(get_logger("task"))
        self.synthesizer = synthesizer or RepositorySynthesizer(
            request.output_dir,
            request.repository_package,
            id_type=request.id_type,
            base_repository=request.base_repository,
            repository_marker=request.repository_marker,
        )
        self.state_store = TaskStateStore(state_dir) if state_dir is not None else None
        self.state = RunState.CONFIGURED

    @property
    def lock_path(self) -> Path:
        output_dir = self.request.output_dir
        return output_dir.parent / f".{output_dir.name}.restgen.lock"

    def declared_inputs(self) -> DeclaredInputs:
        base_dir = self.request.base_dir
        files: Tuple[Path, ...] = ()
        if base_dir.is_dir():
            files = tuple(iter_source_files(base_dir, include_dunder=True))
        values = dict(self.request.fingerprint_values())
        values["generator"] = self.synthesizer.signature()
        return DeclaredInputs(files=files, values=values)

    def declared_outputs(self) -> Tuple[Path, ...]:
        return (self.request.output_dir,)

    def is_up_to_date(self) -> bool:
        """Return True when inputs and recorded outputs match the last successful run."""
        if self.state_store is None:
            return False
        previous = self.state_store.load()
        if previous.inputs is None:
            return False
        current, _ = self._input_fingerprint(previous, report=False)
        if current is None or current != previous.inputs:
            return False
        for rel_path, expected in previous.outputs.items():
            path = self.request.output_dir / rel_path
            try:
                if hash_file(path) != expected:
                    return False
            except OSError:
                return False
        return True

    def run(self, *, force: bool = False) -> RunSummary:
        """Execute the task and return its summary; fatal errors yield a FAILED summary."""
        summary = RunSummary(state=self.state)
        try:
            self._prepare_output()
            with self._exclusive_output():
                if not force and self.is_up_to_date():
                    self.reporter.info("Repositories are up to date, skipping generation")
                    summary.up_to_date = True
                    self._transition(summary, RunState.DONE)
                else:
                    self._execute(summary)
        except (ConfigError, RestgenIOError) as exc:
            self.reporter.error("Generation failed: %s", exc)
            summary.error = str(exc)
            self._transition(summary, RunState.FAILED)
        summary.warnings = self.reporter.warnings
        return summary

    def _execute(self, summary: RunSummary) -> None:
        previous = self.state_store.load() if self.state_store is not None else TaskState()
        inputs_fp, hasher = self._input_fingerprint(previous)

        self._transition(summary, RunState.SCANNING)
        entities = self._scan()
        summary.entities_found = len(entities)
        self.reporter.info("Found %d entities marked for repository generation", len(entities))
        self._check_collisions(entities)

        self._transition(summary, RunState.SYNTHESIZING)
        results = self._synthesize(sorted(entities, key=lambda item: item.qualified_name), summary)

        # An entity whose write failed still owns its previous artifact.
        expected = {self.synthesizer.compose(entity).relative_path.as_posix() for entity in entities}
        summary.stale_removed = self._remove_stale(previous, expected)

        if self.state_store is not None:
            outputs: Dict[str, str] = {}
            for result in results:
                rel_path = result.path.relative_to(self.request.output_dir).as_posix()
                try:
                    outputs[rel_path] = hash_file(result.path)
                except OSError as exc:
                    self.reporter.warning("Cannot fingerprint artifact %s: %s", rel_path, exc)
                    inputs_fp = None
            if summary.artifacts_failed:
                # Keep earlier outputs on record so a later run can still clean them up.
                merged = dict(previous.outputs)
                merged.update(outputs)
                outputs = merged
                inputs_fp = None
            self.state_store.store(TaskState(inputs=inputs_fp, outputs=outputs, files=hasher.entries))

        self._transition(summary, RunState.DONE)
        self.reporter.info(summary.describe())

    def _scan(self) -> Set[EntityDescriptor]:
        source_root = self.request.source_root
        if not source_root.is_dir():
            raise SourceRootError(f"Source root not found or not a directory: {source_root}")
        scanner = EntityScanner(
            TypeUniverse([source_root]),
            source_root,
            self.request.base_package,
            self.request.entity_markers,
            reporter=self.reporter,
        )
        return scanner.scan()

    def _check_collisions(self, entities: Set[EntityDescriptor]) -> None:
        targets: Dict[str, List[str]] = defaultdict(list)
        for entity in entities:
            spec = self.synthesizer.compose(entity)
            targets[spec.qualified_name].append(entity.qualified_name)
        for target, names in sorted(targets.items()):
            if len(names) > 1:
                raise NameCollisionError(target, names)

    def _synthesize(
        self, entities: Sequence[EntityDescriptor], summary: RunSummary
    ) -> List[SynthesisResult]:
        if self.request.max_workers > 1 and len(entities) > 1:
            with ThreadPoolExecutor(max_workers=self.request.max_workers) as pool:
                outcomes = list(pool.map(self._synthesize_one, entities))
        else:
            outcomes = [self._synthesize_one(entity) for entity in entities]

        results: List[SynthesisResult] = []
        for outcome in outcomes:
            if outcome is None:
                summary.artifacts_failed += 1
                continue
            results.append(outcome)
            if outcome.changed:
                summary.artifacts_written += 1
            else:
                summary.artifacts_unchanged += 1
        return results

    def _synthesize_one(self, entity: EntityDescriptor) -> Optional[SynthesisResult]:
        try:
            result = self.synthesizer.synthesize(entity)
        except WriteError as exc:
            self.reporter.error("%s", exc)
            return None
        if result.changed:
            self.reporter.info("Generated repository interface: %s", result.spec.qualified_name)
        else:
            self.reporter.debug("Repository interface unchanged: %s", result.spec.qualified_name)
        return result

    def _remove_stale(self, previous: TaskState, expected: Set[str]) -> int:
        """Delete artifacts recorded last time whose entity is no longer marked or present."""
        removed = 0
        for rel_path in sorted(set(previous.outputs) - expected):
            path = self.request.output_dir / rel_path
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.reporter.warning("Could not remove stale artifact %s: %s", rel_path, exc)
                continue
            self.reporter.info("Removed stale repository artifact: %s", rel_path)
            removed += 1
        return removed

    def _input_fingerprint(
        self, previous: TaskState, *, report: bool = True
    ) -> Tuple[Optional[str], InputHasher]:
        """Fingerprint the declared inputs; None when any input file cannot be read."""
        inputs = self.declared_inputs()
        hasher = InputHasher(previous.files)
        root = self.request.source_root
        digests = []
        unreadable = False
        for path in inputs.files:
            key = path.relative_to(root).as_posix()
            try:
                digests.append((key, hasher.digest(key, path)))
            except OSError as exc:
                unreadable = True
                if report:
                    self.reporter.warning("Cannot fingerprint input %s: %s", key, exc)
        if unreadable:
            return None, hasher
        return fingerprint(inputs.values, digests), hasher

    def _prepare_output(self) -> None:
        output_dir = self.request.output_dir
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Output directory cannot be created: {output_dir}: {exc}") from exc
        if not output_dir.is_dir() or not os.access(output_dir, os.W_OK | os.X_OK):
            raise ConfigError(f"Output directory is not writable: {output_dir}")

    @contextmanager
    def _exclusive_output(self) -> Iterator[None]:
        lock_path = self.lock_path
        fd = self._acquire_lock(lock_path, reclaim=True)
        try:
            os.write(fd, str(os.getpid()).encode("ascii"))
        finally:
            os.close(fd)
        try:
            yield
        finally:
            lock_path.unlink(missing_ok=True)

    def _acquire_lock(self, lock_path: Path, *, reclaim: bool) -> int:
        try:
            return os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as exc:
            owner = _lock_owner(lock_path)
            if reclaim and owner is not None and not _process_alive(owner):
                self.reporter.warning("Reclaiming lock %s left by exited process %d", lock_path, owner)
                lock_path.unlink(missing_ok=True)
                return self._acquire_lock(lock_path, reclaim=False)
            raise OutputLockedError(
                f"Output directory {self.request.output_dir} is owned by another run; "
                f"remove {lock_path} if no run is in progress"
            ) from exc
        except OSError as exc:
            raise OutputLockedError(f"Cannot create lock {lock_path}: {exc}") from exc

    def _transition(self, summary: RunSummary, state: RunState) -> None:
        self.reporter.debug("Generation task %s -> %s", self.state.value, state.value)
        self.state = state
        summary.state = state


def _lock_owner(lock_path: Path) -> Optional[int]:
    """PID recorded in ``lock_path``; None while it is unreadable or still being written."""
    try:
        content = lock_path.read_text(encoding="ascii").strip()
    except (OSError, UnicodeDecodeError):
        return None
    return int(content) if content.isdigit() else None


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


__all__ = ["DeclaredInputs", "GenerationTask"]
