"""
JSON document store for exercises, sessions and sets.

Handles reading, writing, and managing the workout log files.

Every write happens under an exclusive ``fcntl.flock`` on ``.lock`` in the
store directory, and collection files are replaced atomically, so readers
never see a partially written document.
"""

import contextlib
import fcntl
import json
import os
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from ..core.config import MAX_WRITE_ATTEMPTS, STORE_DIR_NAME, ScoringConfig
from ..core.models import Exercise, PersonalRecord, Session, SetEntry
from ..core.records import PrOutcome, empty_personal_record, evaluate_set
from ..core.sessions import performance_context_for, recent_sets
from .serializers import (
    ValidationError,
    dict_to_exercise,
    dict_to_session,
    exercise_to_dict,
    json_line_to_set,
    personal_record_to_dict,
    session_to_dict,
    set_to_json_line,
)


class DocumentNotFoundError(LookupError):
    """Raised when a document id is not in the store."""

    pass


class StaleRecordError(Exception):
    """Raised when an exercise's PR changed between read and write."""

    pass


@dataclass(frozen=True)
class RecordedSet:
    """A stored set together with its PR evaluation."""

    set_entry: SetEntry
    outcome: PrOutcome


def _new_id() -> str:
    return uuid.uuid4().hex[:20]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class WorkoutStore:
    """
    Manages the workout log stored as JSON documents in one directory.

    - exercises.json: {exercise_id: exercise document}
    - sessions.json:  {session_id: session document}
    - sets.jsonl:     one set document per line, in logging order
    - .lock:          lock file serializing writers
    """

    def __init__(self, store_dir: str | Path, max_write_attempts: int = MAX_WRITE_ATTEMPTS):
        """
        Initialize the store.

        Args:
            store_dir: Directory holding the document files
            max_write_attempts: Attempts at the PR update in record_set
        """
        self.store_dir = Path(store_dir)
        self.exercises_path = self.store_dir / "exercises.json"
        self.sessions_path = self.store_dir / "sessions.json"
        self.sets_path = self.store_dir / "sets.jsonl"
        self.lock_path = self.store_dir / ".lock"
        self.max_write_attempts = max(1, max_write_attempts)
        self._lock_depth = 0

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        return self.exercises_path.exists() and self.sessions_path.exists() and self.sets_path.exists()

    def init(self) -> None:
        """
        Create empty document files if they don't exist.

        Creates the store directory if needed.
        """
        self.store_dir.mkdir(parents=True, exist_ok=True)

        with self._locked():
            for path in (self.exercises_path, self.sessions_path):
                if not path.exists():
                    self._write_collection(path, {})
            if not self.sets_path.exists():
                self.sets_path.touch()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _require(self, path: Path) -> None:
        if not path.exists():
            raise FileNotFoundError(f"Store file not found: {path}. Run 'init' first.")

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        """
        Hold the store lock for the duration of the block.

        Re-entrant within one store object: nested blocks share the
        outer lock instead of blocking on it.
        """
        if self._lock_depth:
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
            return

        if not self.store_dir.is_dir():
            raise FileNotFoundError(f"Store directory not found: {self.store_dir}. Run 'init' first.")
        with open(self.lock_path, "a") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            self._lock_depth = 1
            try:
                yield
            finally:
                self._lock_depth = 0
                fcntl.flock(f, fcntl.LOCK_UN)

    def _read_collection(self, path: Path) -> dict[str, dict[str, Any]]:
        self._require(path)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Error parsing {path}: expected a JSON object")
        return data

    def _write_collection(self, path: Path, docs: dict[str, dict[str, Any]]) -> None:
        # Caller holds the lock
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w") as f:
            json.dump(docs, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    def add_exercise(self, exercise: Exercise) -> Exercise:
        """
        Store a new exercise with an empty personal record.

        Args:
            exercise: Exercise to add (id assigned when empty)

        Returns:
            The stored exercise
        """
        now = _now_iso()
        stored = replace(
            exercise,
            id=exercise.id or _new_id(),
            pr=empty_personal_record(now),
            created_at=exercise.created_at or now,
            revision=0,
        )
        with self._locked():
            docs = self._read_collection(self.exercises_path)
            docs[stored.id] = exercise_to_dict(stored)
            self._write_collection(self.exercises_path, docs)
        return stored

    def get_exercise(self, exercise_id: str) -> Exercise:
        """
        Load one exercise.

        Raises:
            DocumentNotFoundError: If the id is unknown
        """
        docs = self._read_collection(self.exercises_path)
        if exercise_id not in docs:
            raise DocumentNotFoundError(f"Exercise not found: {exercise_id}")
        return dict_to_exercise({**docs[exercise_id], "id": exercise_id})

    def list_exercises(self, category: str | None = None) -> list[Exercise]:
        """
        Load all exercises sorted by display name.

        Args:
            category: Only exercises in this category (case-insensitive)
        """
        docs = self._read_collection(self.exercises_path)
        exercises = [dict_to_exercise({**d, "id": i}) for i, d in docs.items()]
        if category:
            exercises = [e for e in exercises if e.category.lower() == category.lower()]
        exercises.sort(key=lambda e: e.display_name.lower())
        return exercises

    def update_exercise(self, exercise: Exercise) -> Exercise:
        """
        Replace the descriptive fields of an exercise.

        The stored PR, revision and creation time are kept; PR writes go
        through update_personal_record.

        Returns:
            The stored exercise
        """
        with self._locked():
            docs = self._read_collection(self.exercises_path)
            if exercise.id not in docs:
                raise DocumentNotFoundError(f"Exercise not found: {exercise.id}")
            current = dict_to_exercise({**docs[exercise.id], "id": exercise.id})
            updated = replace(
                exercise,
                pr=current.pr,
                revision=current.revision,
                created_at=current.created_at,
            )
            docs[exercise.id] = exercise_to_dict(updated)
            self._write_collection(self.exercises_path, docs)
        return updated

    def delete_exercise(self, exercise_id: str) -> None:
        """Delete an exercise. Logged sets are kept."""
        with self._locked():
            docs = self._read_collection(self.exercises_path)
            if exercise_id not in docs:
                raise DocumentNotFoundError(f"Exercise not found: {exercise_id}")
            del docs[exercise_id]
            self._write_collection(self.exercises_path, docs)

    def update_personal_record(
        self,
        exercise_id: str,
        record: PersonalRecord,
        expected_revision: int | None = None,
    ) -> int:
        """
        Write a new personal record for an exercise.

        The revision check and the write happen under the store lock.

        Args:
            exercise_id: Exercise to update
            record: Record to store
            expected_revision: Revision the caller read; None skips the check

        Returns:
            The new revision

        Raises:
            DocumentNotFoundError: If the id is unknown
            StaleRecordError: If the stored revision differs from expected_revision
        """
        with self._locked():
            docs = self._read_collection(self.exercises_path)
            if exercise_id not in docs:
                raise DocumentNotFoundError(f"Exercise not found: {exercise_id}")

            doc = docs[exercise_id]
            revision = int(doc.get("revision", 0))
            if expected_revision is not None and revision != expected_revision:
                raise StaleRecordError(
                    f"PR for exercise {exercise_id} changed "
                    f"(expected revision {expected_revision}, found {revision})"
                )

            doc["pr"] = personal_record_to_dict(record)
            doc["revision"] = revision + 1
            self._write_collection(self.exercises_path, docs)
        return revision + 1

    def reset_personal_record(self, exercise_id: str) -> PersonalRecord:
        """Clear the stored PR of an exercise."""
        record = empty_personal_record()
        self.update_personal_record(exercise_id, record)
        return record

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def add_session(self, session: Session) -> Session:
        """
        Store a new session.

        Args:
            session: Session to add (id assigned when empty)

        Returns:
            The stored session
        """
        stored = replace(session, id=session.id or _new_id())
        with self._locked():
            docs = self._read_collection(self.sessions_path)
            docs[stored.id] = session_to_dict(stored)
            self._write_collection(self.sessions_path, docs)
        return stored

    def get_session(self, session_id: str) -> Session:
        """
        Load one session.

        Raises:
            DocumentNotFoundError: If the id is unknown
        """
        docs = self._read_collection(self.sessions_path)
        if session_id not in docs:
            raise DocumentNotFoundError(f"Session not found: {session_id}")
        return dict_to_session({**docs[session_id], "id": session_id})

    def list_sessions(self) -> list[Session]:
        """Load all sessions, newest date first."""
        docs = self._read_collection(self.sessions_path)
        sessions = [dict_to_session({**d, "id": i}) for i, d in docs.items()]
        sessions.sort(key=lambda s: s.date, reverse=True)
        return sessions

    def update_session(self, session: Session) -> None:
        """
        Replace the metadata of a stored session.

        ``set_ids`` and ``pr_hit`` are merged with the stored document so a
        set linked by another writer is not dropped.
        """
        with self._locked():
            docs = self._read_collection(self.sessions_path)
            if session.id not in docs:
                raise DocumentNotFoundError(f"Session not found: {session.id}")
            current = dict_to_session({**docs[session.id], "id": session.id})
            set_ids = list(dict.fromkeys([*current.set_ids, *session.set_ids]))
            merged = replace(session, set_ids=set_ids, pr_hit=current.pr_hit or session.pr_hit)
            docs[session.id] = session_to_dict(merged)
            self._write_collection(self.sessions_path, docs)

    def mark_pr_hit(self, session_id: str) -> None:
        """Flag a session as having hit a PR."""
        with self._locked():
            session = self.get_session(session_id)
            if not session.pr_hit:
                self.update_session(replace(session, pr_hit=True))

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def load_sets(self) -> list[SetEntry]:
        """
        Load all sets in logging order.

        Raises:
            FileNotFoundError: If the sets file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        self._require(self.sets_path)

        sets: list[SetEntry] = []
        with self._locked(), open(self.sets_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    sets.append(json_line_to_set(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.sets_path}: {e}"
                    ) from e
        return sets

    def add_set(self, set_entry: SetEntry) -> SetEntry:
        """
        Append a set and add its id to the owning session.

        Args:
            set_entry: Set to log (id and timestamp assigned when empty)

        Returns:
            The stored set

        Raises:
            DocumentNotFoundError: If the session or exercise is unknown
        """
        stored = replace(
            set_entry,
            id=set_entry.id or _new_id(),
            timestamp=set_entry.timestamp or _now_iso(),
        )
        with self._locked():
            session = self.get_session(stored.session_id)
            self.get_exercise(stored.exercise_id)

            with open(self.sets_path, "a") as f:
                f.write(set_to_json_line(stored) + "\n")

            if stored.id not in session.set_ids:
                self.update_session(replace(session, set_ids=[*session.set_ids, stored.id]))
        return stored

    def get_set(self, set_id: str) -> SetEntry:
        """
        Load one set.

        Raises:
            DocumentNotFoundError: If the id is unknown
        """
        for s in self.load_sets():
            if s.id == set_id:
                return s
        raise DocumentNotFoundError(f"Set not found: {set_id}")

    def sets_for_session(self, session: Session) -> list[SetEntry]:
        """Sets referenced by a session, in the session's set_ids order."""
        by_id = {s.id: s for s in self.load_sets()}
        return [by_id[i] for i in session.set_ids if i in by_id]

    def sets_for_exercise(self, exercise_id: str, limit: int | None = None) -> list[SetEntry]:
        """Sets logged for one exercise, newest first."""
        return recent_sets(self.load_sets(), exercise_id, limit)

    # ------------------------------------------------------------------
    # Personal records
    # ------------------------------------------------------------------

    def record_set(
        self,
        set_entry: SetEntry,
        scoring: ScoringConfig | None = None,
    ) -> RecordedSet:
        """
        Log a set and update the exercise PR when the set beats it.

        The best is re-read on every attempt and written back only if its
        revision is unchanged, so a PR written concurrently is never
        overwritten by a set that no longer beats it. The set itself is
        stored only once the PR question is settled; when every attempt
        loses, nothing is written.

        Args:
            set_entry: Set to log
            scoring: Scoring options for the reported scores

        Returns:
            RecordedSet with the stored set and its evaluation

        Raises:
            DocumentNotFoundError: If the session or exercise is unknown
            StaleRecordError: If every write attempt found a newer PR
        """
        session = self.get_session(set_entry.session_id)
        self.get_exercise(set_entry.exercise_id)
        pending = replace(
            set_entry,
            id=set_entry.id or _new_id(),
            timestamp=set_entry.timestamp or _now_iso(),
        )

        outcome = self._settle_personal_record(pending, session, scoring)

        stored = self.add_set(pending)
        if outcome.is_pr:
            self.mark_pr_hit(session.id)
        return RecordedSet(set_entry=stored, outcome=outcome)

    def _settle_personal_record(
        self,
        candidate: SetEntry,
        session: Session,
        scoring: ScoringConfig | None,
    ) -> PrOutcome:
        for _ in range(self.max_write_attempts):
            exercise = self.get_exercise(candidate.exercise_id)
            context = performance_context_for(session, exercise)
            outcome = evaluate_set(exercise.pr, candidate, context, scoring)
            if not outcome.is_pr or outcome.record is None:
                return outcome
            try:
                self.update_personal_record(
                    exercise.id, outcome.record, expected_revision=exercise.revision
                )
            except StaleRecordError:
                continue
            return outcome

        raise StaleRecordError(
            f"Could not update PR for exercise {candidate.exercise_id} "
            f"after {self.max_write_attempts} attempts"
        )


def get_default_store_path() -> Path:
    """
    Get the default store directory.

    Returns:
        ~/.liftlog
    """
    return Path.home() / STORE_DIR_NAME
