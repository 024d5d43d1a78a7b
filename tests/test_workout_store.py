"""
Tests for the JSON document store and the read-decide-write PR update.
"""

import multiprocessing

import pytest

from liftlog.core.models import Exercise, PersonalRecord, Session, SetEntry
from liftlog.io.serializers import ValidationError
from liftlog.io.workout_store import DocumentNotFoundError, StaleRecordError, WorkoutStore


@pytest.fixture
def store(tmp_path):
    s = WorkoutStore(tmp_path / "log")
    s.init()
    return s


@pytest.fixture
def pull_up(store):
    return store.add_exercise(Exercise(name="Pull-Up", category="Pull", is_bodyweight=True))


@pytest.fixture
def bench(store):
    return store.add_exercise(Exercise(name="Bench Press", variation="Barbell", category="Push"))


@pytest.fixture
def session(store):
    return store.add_session(Session(date="2025-06-01", body_weight=180, category="Pull"))


def _log_many(store_dir, session_id, exercise_id, reps_values):
    """Log one set per rep count from a separate process."""
    store = WorkoutStore(store_dir, max_write_attempts=50)
    for reps in reps_values:
        store.record_set(SetEntry(
            session_id=session_id, exercise_id=exercise_id, rep_count=reps, resistance_weight=100,
        ))


def _log(store, session, exercise, reps=None, weight=None, height=None):
    return store.record_set(
        SetEntry(
            session_id=session.id,
            exercise_id=exercise.id,
            rep_count=reps,
            resistance_weight=weight,
            resistance_height=height,
        )
    )


class TestStoreBasics:
    def test_init_creates_files(self, tmp_path):
        s = WorkoutStore(tmp_path / "new")
        assert not s.exists()
        s.init()
        assert s.exists()
        assert s.list_exercises() == []
        assert s.list_sessions() == []
        assert s.load_sets() == []

    def test_uninitialized_store_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkoutStore(tmp_path / "nothing").list_exercises()

    def test_add_exercise_assigns_id_and_empty_pr(self, store, bench):
        loaded = store.get_exercise(bench.id)
        assert loaded.id
        assert loaded.display_name == "Bench Press (Barbell)"
        assert loaded.pr.reps is None
        assert loaded.pr.last_updated
        assert loaded.revision == 0

    def test_list_exercises_by_category(self, store, pull_up, bench):
        assert [e.name for e in store.list_exercises()] == ["Bench Press", "Pull-Up"]
        assert [e.name for e in store.list_exercises("pull")] == ["Pull-Up"]

    def test_unknown_ids(self, store):
        with pytest.raises(DocumentNotFoundError):
            store.get_exercise("nope")
        with pytest.raises(DocumentNotFoundError):
            store.get_session("nope")
        with pytest.raises(DocumentNotFoundError):
            store.get_set("nope")

    def test_update_exercise_keeps_pr(self, store, session, bench):
        _log(store, session, bench, reps=5, weight=135)
        current = store.get_exercise(bench.id)
        store.update_exercise(Exercise(id=bench.id, name="Bench Press", variation="Paused"))
        updated = store.get_exercise(bench.id)
        assert updated.variation == "Paused"
        assert updated.pr == current.pr
        assert updated.revision == current.revision

    def test_delete_exercise(self, store, bench):
        store.delete_exercise(bench.id)
        with pytest.raises(DocumentNotFoundError):
            store.get_exercise(bench.id)

    def test_sessions_sorted_newest_first(self, store):
        store.add_session(Session(date="2025-05-01"))
        store.add_session(Session(date="2025-07-01"))
        assert [s.date for s in store.list_sessions()] == ["2025-07-01", "2025-05-01"]

    def test_corrupt_sets_line_reports_line_number(self, store):
        store.sets_path.write_text('{"id":"a","rep_count":1}\n{broken\n')
        with pytest.raises(ValidationError, match="line 2"):
            store.load_sets()


class TestAddSet:
    def test_add_set_links_session(self, store, session, bench):
        stored = store.add_set(SetEntry(session_id=session.id, exercise_id=bench.id, rep_count=8))
        assert stored.id
        assert stored.timestamp
        assert store.get_session(session.id).set_ids == [stored.id]
        assert store.get_set(stored.id).rep_count == 8

    def test_add_set_requires_known_session_and_exercise(self, store, session, bench):
        with pytest.raises(DocumentNotFoundError):
            store.add_set(SetEntry(session_id="missing", exercise_id=bench.id, rep_count=1))
        with pytest.raises(DocumentNotFoundError):
            store.add_set(SetEntry(session_id=session.id, exercise_id="missing", rep_count=1))

    def test_sets_for_exercise_newest_first(self, store, session, bench, pull_up):
        for i, ts in enumerate(["2025-06-01T08:00:00+00:00", "2025-06-01T09:00:00+00:00"]):
            store.add_set(SetEntry(
                id=f"b{i}", session_id=session.id, exercise_id=bench.id, rep_count=5, timestamp=ts,
            ))
        store.add_set(SetEntry(session_id=session.id, exercise_id=pull_up.id, rep_count=10))
        assert [s.id for s in store.sets_for_exercise(bench.id)] == ["b1", "b0"]
        assert [s.id for s in store.sets_for_exercise(bench.id, limit=1)] == ["b1"]

    def test_sets_for_session_in_logged_order(self, store, session, bench):
        a = store.add_set(SetEntry(session_id=session.id, exercise_id=bench.id, rep_count=5))
        b = store.add_set(SetEntry(session_id=session.id, exercise_id=bench.id, rep_count=6))
        loaded = store.sets_for_session(store.get_session(session.id))
        assert [s.id for s in loaded] == [a.id, b.id]


class TestRecordSet:
    def test_first_set_is_pr_and_stored(self, store, session, bench):
        recorded = _log(store, session, bench, reps=5, weight=135)
        assert recorded.outcome.is_pr is True

        exercise = store.get_exercise(bench.id)
        assert exercise.pr.reps == 5
        assert exercise.pr.resistance_weight == 135
        assert exercise.pr.pr_set_id == recorded.set_entry.id
        assert exercise.revision == 1
        assert store.get_session(session.id).pr_hit is True

    def test_non_pr_leaves_record_alone(self, store, session, bench):
        _log(store, session, bench, reps=5, weight=135)
        recorded = _log(store, session, bench, reps=4, weight=135)
        assert recorded.outcome.is_pr is False

        exercise = store.get_exercise(bench.id)
        assert exercise.pr.reps == 5
        assert exercise.revision == 1

    def test_tie_is_not_pr(self, store, session, bench):
        _log(store, session, bench, reps=5, weight=135)
        assert _log(store, session, bench, reps=5, weight=135).outcome.is_pr is False

    def test_non_pr_does_not_flag_session(self, store, bench):
        first = store.add_session(Session(date="2025-06-01"))
        second = store.add_session(Session(date="2025-06-03"))
        _log(store, first, bench, reps=5, weight=135)
        _log(store, second, bench, reps=3, weight=135)
        assert store.get_session(second.id).pr_hit is False

    def test_bodyweight_score_uses_session_body_weight(self, store, session, pull_up):
        recorded = _log(store, session, pull_up, reps=5, weight=10)
        assert recorded.outcome.score == pytest.approx(5 * (180 + 10))

    def test_reset_pr_allows_new_first_record(self, store, session, bench):
        _log(store, session, bench, reps=8, weight=185)
        store.reset_personal_record(bench.id)
        assert store.get_exercise(bench.id).pr.reps is None
        assert _log(store, session, bench, reps=1, weight=45).outcome.is_pr is True

    def test_stale_revision_rejected(self, store, bench):
        store.update_personal_record(bench.id, PersonalRecord(reps=5), expected_revision=0)
        with pytest.raises(StaleRecordError):
            store.update_personal_record(bench.id, PersonalRecord(reps=6), expected_revision=0)

    def test_concurrent_pr_is_re_evaluated(self, store, session, bench, monkeypatch):
        """A PR written between read and write is re-read; the weaker set loses."""
        _log(store, session, bench, reps=5, weight=100)

        original = store.update_personal_record
        calls = {"n": 0}

        def racing_update(exercise_id, record, expected_revision=None):
            calls["n"] += 1
            if calls["n"] == 1:
                # Another writer stores a stronger PR first
                original(exercise_id, PersonalRecord(reps=10, resistance_weight=200))
            return original(exercise_id, record, expected_revision)

        monkeypatch.setattr(store, "update_personal_record", racing_update)
        recorded = _log(store, session, bench, reps=6, weight=100)

        assert recorded.outcome.is_pr is False
        assert store.get_exercise(bench.id).pr.reps == 10

    def test_gives_up_after_max_attempts(self, tmp_path, monkeypatch):
        s = WorkoutStore(tmp_path / "log", max_write_attempts=2)
        s.init()
        ex = s.add_exercise(Exercise(name="Squat"))
        sess = s.add_session(Session(date="2025-06-01"))

        def always_stale(exercise_id, record, expected_revision=None):
            raise StaleRecordError("changed")

        monkeypatch.setattr(s, "update_personal_record", always_stale)
        with pytest.raises(StaleRecordError):
            _log(s, sess, ex, reps=5, weight=225)
        assert s.load_sets() == []
        assert s.get_session(sess.id).set_ids == []
        assert s.get_exercise(ex.id).pr.reps is None

    def test_retry_after_lost_race_logs_set_once(self, tmp_path, monkeypatch):
        s = WorkoutStore(tmp_path / "log", max_write_attempts=1)
        s.init()
        ex = s.add_exercise(Exercise(name="Squat"))
        sess = s.add_session(Session(date="2025-06-01"))
        original = s.update_personal_record

        def always_stale(exercise_id, record, expected_revision=None):
            raise StaleRecordError("changed")

        monkeypatch.setattr(s, "update_personal_record", always_stale)
        with pytest.raises(StaleRecordError):
            _log(s, sess, ex, reps=5, weight=225)

        monkeypatch.setattr(s, "update_personal_record", original)
        _log(s, sess, ex, reps=5, weight=225)
        assert len(s.load_sets()) == 1
        assert len(s.get_session(sess.id).set_ids) == 1

    def test_bad_stored_record_does_not_break_logging(self, store, session, bench):
        store.update_personal_record(bench.id, PersonalRecord(reps=-1))
        recorded = _log(store, session, bench, reps=5, weight=135)
        assert recorded.outcome.is_pr is True
        assert recorded.outcome.previous_score == 0.0


class TestConcurrentWriters:
    """Several processes logging to one store at the same time."""

    def test_parallel_record_set_keeps_every_set_and_the_best_pr(self, store, session, bench):
        workers = 4
        batches = [list(range(k + 1, 101, workers)) for k in range(workers)]

        ctx = multiprocessing.get_context("fork")
        procs = [
            ctx.Process(target=_log_many, args=(store.store_dir, session.id, bench.id, batch))
            for batch in batches
        ]
        for p in procs:
            p.start()
        for p in procs:
            p.join(timeout=120)

        assert [p.exitcode for p in procs] == [0] * workers
        sets = store.load_sets()
        assert len(sets) == 100
        assert sorted(store.get_session(session.id).set_ids) == sorted(s.id for s in sets)
        assert store.get_exercise(bench.id).pr.reps == 100
        assert store.get_session(session.id).pr_hit is True

    def test_writes_leave_no_temp_files(self, store, session, bench):
        _log(store, session, bench, reps=5, weight=135)
        assert not list(store.store_dir.glob("*.tmp"))
