"""
Formula-focused unit tests for personal-record evaluation.

Each test checks one rule of the scoring formula or the three-metric
dominance rule. Values are hand-computed so the tests double as examples.
"""

import random

import pytest

from liftlog.core.config import ScoringConfig
from liftlog.core.models import PerformanceContext, PersonalRecord, SetEntry
from liftlog.core.records import (
    compute_performance_score,
    effective_resistance,
    empty_personal_record,
    evaluate_set,
    format_pr_message,
    has_personal_record,
    is_new_personal_record,
    personal_record_from_set,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

EXTERNAL = PerformanceContext()
FLOOR = ScoringConfig(resistance_floor=True)


def _set(reps: int | None = None, weight: float | None = None, height: float | None = None) -> SetEntry:
    return SetEntry(rep_count=reps, resistance_weight=weight, resistance_height=height)


def _best(reps: int | None = None, weight: float | None = None, height: float | None = None) -> PersonalRecord:
    return PersonalRecord(reps=reps, resistance_weight=weight, resistance_height=height)


def _bw(body_weight: float) -> PerformanceContext:
    return PerformanceContext(body_weight=body_weight, is_bodyweight_exercise=True)


# =============================================================================
# Performance score
# =============================================================================


class TestPerformanceScore:
    """score = reps * R_eff"""

    def test_bodyweight_exercise_adds_body_weight(self):
        """5 reps at +10 with 150 body weight → 5 * 160 = 800."""
        assert compute_performance_score(_set(5, 10), _bw(150)) == pytest.approx(800.0)

    def test_external_exercise_ignores_body_weight(self):
        """5 reps at 20 → 100 regardless of body weight."""
        ctx = PerformanceContext(body_weight=180, is_bodyweight_exercise=False)
        assert compute_performance_score(_set(5, 20), ctx) == pytest.approx(100.0)
        assert compute_performance_score(_set(5, 20), EXTERNAL) == pytest.approx(100.0)

    def test_zero_reps_scores_zero(self):
        assert compute_performance_score(_set(0, 200), EXTERNAL) == 0.0
        assert compute_performance_score(_set(0, 200), _bw(180)) == 0.0

    def test_zero_reps_scores_zero_with_floor(self):
        """The floor only scales sets that have reps."""
        assert compute_performance_score(_set(0, 0), EXTERNAL, FLOOR) == 0.0

    def test_missing_fields_default_to_zero(self):
        assert compute_performance_score(SetEntry(), EXTERNAL) == 0.0
        assert compute_performance_score(_set(reps=8), EXTERNAL) == 0.0

    def test_bodyweight_without_added_weight(self):
        """10 pull-ups at 180 body weight, no belt → 1800."""
        assert compute_performance_score(_set(10), _bw(180)) == pytest.approx(1800.0)

    def test_negative_inputs_never_score_below_zero(self):
        ctx = PerformanceContext(body_weight=-50, is_bodyweight_exercise=True)
        assert compute_performance_score(_set(5, -20), ctx) == 0.0
        assert compute_performance_score(_set(5, -20), EXTERNAL) == 0.0


class TestResistanceFloor:
    """Optional floor for non-bodyweight sets with no resistance."""

    def test_floor_off_by_default(self):
        assert compute_performance_score(_set(12, 0), EXTERNAL) == 0.0

    def test_floor_turns_zero_resistance_into_one(self):
        """12 unweighted reps → 12 * 1 = 12."""
        assert compute_performance_score(_set(12, 0), EXTERNAL, FLOOR) == pytest.approx(12.0)
        assert compute_performance_score(_set(12), EXTERNAL, FLOOR) == pytest.approx(12.0)

    def test_floor_leaves_weighted_sets_alone(self):
        assert compute_performance_score(_set(5, 20), EXTERNAL, FLOOR) == pytest.approx(100.0)

    def test_floor_does_not_apply_to_bodyweight_exercises(self):
        assert effective_resistance(0, _bw(0), FLOOR) == 0.0
        assert effective_resistance(0, _bw(150), FLOOR) == pytest.approx(150.0)

    def test_custom_floor_value(self):
        scoring = ScoringConfig(resistance_floor=True, floor_value=2.5)
        assert compute_performance_score(_set(4, 0), EXTERNAL, scoring) == pytest.approx(10.0)


class TestScoreProperties:
    """Randomized checks of purity and monotonicity."""

    VALUES = [0, 1, 2.5, 10, 45, 135, 315, 1000, 1e6]

    def _random_cases(self, n: int = 300):
        rng = random.Random(20240601)
        for _ in range(n):
            yield (
                rng.randint(0, 500),
                rng.choice(self.VALUES + [rng.uniform(0, 1000)]),
                rng.choice(self.VALUES + [rng.uniform(0, 400)]),
                rng.random() < 0.5,
                rng.random() < 0.5,
            )

    def test_score_is_non_negative_and_idempotent(self):
        for reps, weight, bw, is_bw, floor in self._random_cases():
            ctx = PerformanceContext(body_weight=bw, is_bodyweight_exercise=is_bw)
            scoring = ScoringConfig(resistance_floor=floor)
            entry = _set(reps, weight)
            first = compute_performance_score(entry, ctx, scoring)
            second = compute_performance_score(entry, ctx, scoring)
            assert first >= 0
            assert first == second

    def test_monotonic_in_reps(self):
        for reps, weight, bw, is_bw, floor in self._random_cases():
            ctx = PerformanceContext(body_weight=bw, is_bodyweight_exercise=is_bw)
            scoring = ScoringConfig(resistance_floor=floor)
            lower = compute_performance_score(_set(reps, weight), ctx, scoring)
            higher = compute_performance_score(_set(reps + 1, weight), ctx, scoring)
            assert higher >= lower

    def test_monotonic_in_resistance(self):
        for reps, weight, bw, is_bw, _ in self._random_cases():
            ctx = PerformanceContext(body_weight=bw, is_bodyweight_exercise=is_bw)
            lower = compute_performance_score(_set(reps, weight), ctx)
            higher = compute_performance_score(_set(reps, weight + 5), ctx)
            assert higher >= lower

    def test_pr_decision_is_idempotent(self):
        rng = random.Random(7)
        for _ in range(300):
            best = _best(rng.randint(0, 10), rng.choice([0, 45, 50]), rng.choice([0, 12]))
            cand = _set(rng.randint(0, 10), rng.choice([0, 45, 50]), rng.choice([0, 12]))
            assert is_new_personal_record(best, cand, EXTERNAL) == is_new_personal_record(
                best, cand, EXTERNAL
            )


# =============================================================================
# PR decision
# =============================================================================


class TestFirstRecord:
    """No record yet: any positive metric is a PR."""

    def test_first_ever_record_from_reps(self):
        assert is_new_personal_record(_best(0, 0, 0), _set(5, 0, 0), EXTERNAL) is True

    def test_first_ever_record_from_height_only(self):
        assert is_new_personal_record(_best(0, 0, 0), _set(0, 0, 20), EXTERNAL) is True

    def test_missing_record_counts_as_empty(self):
        assert is_new_personal_record(None, _set(1), EXTERNAL) is True
        assert is_new_personal_record(_best(), _set(weight=45), EXTERNAL) is True

    def test_empty_candidate_is_not_a_record(self):
        assert is_new_personal_record(_best(0, 0, 0), _set(0, 0, 0), EXTERNAL) is False
        assert is_new_personal_record(None, SetEntry(), EXTERNAL) is False


class TestDominanceRule:
    """One metric strictly better, none worse."""

    CURRENT = _best(5, 50, 0)

    def test_reps_only_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(6, 50, 0), EXTERNAL) is True

    def test_weight_only_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(5, 55, 0), EXTERNAL) is True

    def test_height_only_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(5, 50, 10), EXTERNAL) is True

    def test_regression_is_not_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(4, 50, 0), EXTERNAL) is False

    def test_exact_tie_is_not_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(5, 50, 0), EXTERNAL) is False

    def test_two_metrics_improving_is_pr(self):
        assert is_new_personal_record(self.CURRENT, _set(6, 55, 0), EXTERNAL) is True

    def test_trade_off_is_not_pr(self):
        """More reps at less weight does not dominate."""
        assert is_new_personal_record(self.CURRENT, _set(8, 45, 0), EXTERNAL) is False

    def test_missing_candidate_metric_reads_as_zero(self):
        """Weight left blank against a 50 lb record is a regression."""
        assert is_new_personal_record(self.CURRENT, _set(6, None, None), EXTERNAL) is False

    def test_context_does_not_change_decision(self):
        for ctx in (EXTERNAL, _bw(200)):
            assert is_new_personal_record(self.CURRENT, _set(6, 50, 0), ctx) is True
            assert is_new_personal_record(self.CURRENT, _set(5, 50, 0), ctx) is False


# =============================================================================
# Helpers around the decision
# =============================================================================


class TestRecordHelpers:
    def test_has_personal_record(self):
        assert has_personal_record(None) is False
        assert has_personal_record(_best()) is False
        assert has_personal_record(_best(0, 0, 0)) is False
        assert has_personal_record(_best(reps=1)) is True

    def test_personal_record_from_set(self):
        entry = SetEntry(rep_count=6, resistance_weight=50, resistance_height=0, id="set-1")
        record = personal_record_from_set(entry, when="2025-06-01T12:00:00+00:00")
        assert record == PersonalRecord(
            reps=6,
            resistance_weight=50,
            resistance_height=0,
            pr_set_id="set-1",
            last_updated="2025-06-01T12:00:00+00:00",
        )

    def test_empty_personal_record_has_no_metrics(self):
        record = empty_personal_record("2025-06-01T00:00:00+00:00")
        assert not has_personal_record(record)
        assert record.last_updated == "2025-06-01T00:00:00+00:00"

    def test_evaluate_set_pr(self):
        outcome = evaluate_set(_best(5, 50, 0), _set(6, 50, 0), EXTERNAL)
        assert outcome.is_pr is True
        assert outcome.score == pytest.approx(300.0)
        assert outcome.previous_score == pytest.approx(250.0)
        assert outcome.record is not None
        assert outcome.record.reps == 6

    def test_evaluate_set_with_negative_stored_reps(self):
        """A hand-edited record with negative reps scores as zero."""
        outcome = evaluate_set(_best(-1), _set(5, 10), EXTERNAL)
        assert outcome.is_pr is True
        assert outcome.previous_score == 0.0
        assert outcome.score == pytest.approx(50.0)

    def test_evaluate_set_not_pr_has_no_record(self):
        outcome = evaluate_set(_best(5, 50, 0), _set(4, 50, 0), EXTERNAL)
        assert outcome.is_pr is False
        assert outcome.record is None

    def test_evaluate_set_scores_best_in_same_context(self):
        outcome = evaluate_set(_best(5, 10, 0), _set(6, 10, 0), _bw(150))
        assert outcome.previous_score == pytest.approx(800.0)
        assert outcome.score == pytest.approx(960.0)

    def test_format_pr_message(self):
        assert format_pr_message(_set(5, 50, 0)) == "New PR! 5 reps, 50lbs, 0 height"
        assert format_pr_message(_set(3, 22.5), "kg") == "New PR! 3 reps, 22.5kg, 0 height"
