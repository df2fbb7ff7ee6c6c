"""
Tests for the prediction math.

Pure functions only: live signal, trend, historical signal, blend,
incremental slot update and best-time ranking.
"""

import math
import random
import uuid
from datetime import timedelta

import pytest

from conftest import NOW, make_slot
from queuepulse.models import Checkin
from queuepulse.services.prediction import (
    HistoricalSignal,
    LiveSignal,
    Trend,
    blend,
    calculate_historical_signal,
    calculate_live_signal,
    calculate_trend,
    fold_into_slot,
    rank_best_times,
    round_half_up,
)

LOCATION_ID = uuid.uuid4()


def _checkins(people, minutes_apart=1.0, confidence=1.0):
    """Check-ins newest first, one every `minutes_apart` minutes."""
    return [
        Checkin(
            location_id=LOCATION_ID,
            device_id=f"d{i}",
            people_ahead=p,
            queue_stage="waiting",
            confidence=confidence,
            created_at=NOW - timedelta(minutes=i * minutes_apart),
        )
        for i, p in enumerate(people)
    ]


# =============================================================================
# Live signal
# =============================================================================

class TestLiveSignal:
    """Tests for calculate_live_signal."""

    def test_empty_window(self):
        live = calculate_live_signal([], NOW)
        assert live.queue_size == 0
        assert live.weight == 0
        assert live.trend == Trend.STABLE

    def test_single_fresh_checkin(self):
        live = calculate_live_signal(_checkins([7]), NOW)
        assert live.queue_size == pytest.approx(7)
        assert live.weight == pytest.approx(0.2)

    def test_weight_saturates_at_five(self):
        assert calculate_live_signal(_checkins([3] * 4), NOW).weight == pytest.approx(0.8)
        assert calculate_live_signal(_checkins([3] * 5), NOW).weight == 1.0
        assert calculate_live_signal(_checkins([3] * 12), NOW).weight == 1.0

    def test_recent_reports_dominate(self):
        # Fresh report of 20 vs a 30 minute old report of 0
        live = calculate_live_signal(_checkins([20, 0], minutes_apart=30), NOW)
        expected = 20 / (1 + math.exp(-1))
        assert live.queue_size == pytest.approx(expected)

    def test_confidence_scales_weight(self):
        checkins = _checkins([10, 0], minutes_apart=0)
        checkins[1].confidence = 0.25
        live = calculate_live_signal(checkins, NOW)
        assert live.queue_size == pytest.approx(10 / 1.25)

    def test_missing_confidence_counts_as_full(self):
        live = calculate_live_signal(_checkins([4, 8], minutes_apart=0, confidence=None), NOW)
        assert live.queue_size == pytest.approx(6)

    def test_zero_total_weight_gives_zero_queue(self):
        live = calculate_live_signal(_checkins([9, 9], confidence=0.0), NOW)
        assert live.queue_size == 0
        assert live.weight == pytest.approx(0.4)

    def test_future_timestamps_are_not_overweighted(self):
        checkins = _checkins([10, 2], minutes_apart=0)
        checkins[0].created_at = NOW + timedelta(minutes=30)
        live = calculate_live_signal(checkins, NOW)
        assert live.queue_size == pytest.approx(6)

    def test_queue_size_is_bounded_by_inputs(self):
        rng = random.Random(42)
        for _ in range(200):
            people = [rng.randint(0, 60) for _ in range(rng.randint(1, 12))]
            checkins = _checkins(people, minutes_apart=rng.uniform(0, 5))
            live = calculate_live_signal(checkins, NOW)
            assert min(people) - 1e-9 <= live.queue_size <= max(people) + 1e-9


class TestTrend:
    """Tests for calculate_trend."""

    @pytest.mark.parametrize("people", [[], [50], [50, 0], [0, 50]])
    def test_fewer_than_three_is_stable(self, people):
        assert calculate_trend(_checkins(people)) == Trend.STABLE

    def test_increasing(self):
        # Newest first: recent half [10, 9], older half [2]
        assert calculate_trend(_checkins([10, 9, 2])) == Trend.INCREASING

    def test_decreasing(self):
        assert calculate_trend(_checkins([1, 2, 8, 9])) == Trend.DECREASING

    def test_threshold_is_exclusive(self):
        # recent mean 7, older mean 5: diff exactly 2
        assert calculate_trend(_checkins([7, 7, 5, 5])) == Trend.STABLE
        assert calculate_trend(_checkins([5, 5, 7, 7])) == Trend.STABLE

    def test_odd_count_puts_extra_in_recent_half(self):
        # ceil(5/2) = 3 recent: [6, 6, 6] vs older [0, 9] -> 6 - 4.5 = 1.5
        assert calculate_trend(_checkins([6, 6, 6, 0, 9])) == Trend.STABLE
        # [6, 6, 0] vs [0, 0] -> 4 - 0 = 4
        assert calculate_trend(_checkins([6, 6, 0, 0, 0])) == Trend.INCREASING

    def test_live_signal_reports_trend(self):
        live = calculate_live_signal(_checkins([20, 18, 3, 2]), NOW)
        assert live.trend == Trend.INCREASING


# =============================================================================
# Historical signal
# =============================================================================

class TestHistoricalSignal:
    """Tests for calculate_historical_signal."""

    def test_missing_slot(self):
        assert calculate_historical_signal(None) == HistoricalSignal()

    @pytest.mark.parametrize("samples", [0, 1, 2])
    def test_too_few_samples_are_ignored(self, samples):
        slot = make_slot(LOCATION_ID, 3, 10, 40.0, 8.0, samples)
        assert calculate_historical_signal(slot).weight == 0

    def test_weight_grows_with_samples(self):
        assert calculate_historical_signal(make_slot(LOCATION_ID, 3, 10, 40.0, 8.0, 3)).weight == pytest.approx(0.15)
        assert calculate_historical_signal(make_slot(LOCATION_ID, 3, 10, 40.0, 8.0, 10)).weight == pytest.approx(0.5)
        assert calculate_historical_signal(make_slot(LOCATION_ID, 3, 10, 40.0, 8.0, 20)).weight == 1.0
        assert calculate_historical_signal(make_slot(LOCATION_ID, 3, 10, 40.0, 8.0, 500)).weight == 1.0

    def test_carries_averages(self):
        signal = calculate_historical_signal(make_slot(LOCATION_ID, 3, 10, 42.5, 8.5, 6))
        assert signal.average_wait == 42.5
        assert signal.average_queue == 8.5


# =============================================================================
# Blend
# =============================================================================

class TestBlend:
    """Tests for blend."""

    def test_no_signal(self):
        result = blend(LiveSignal(), HistoricalSignal(), 5)
        assert result.estimated_wait_time == 0
        assert result.confidence == 0.1
        assert result.trend == Trend.STABLE
        assert result.current_queue_size == 0

    def test_reliable_live_data_wins(self):
        live = LiveSignal(queue_size=10, weight=1.0, trend=Trend.DECREASING)
        historical = HistoricalSignal(average_wait=200, average_queue=40, weight=1.0)
        result = blend(live, historical, 8)
        assert result.estimated_wait_time == 80
        assert result.current_queue_size == 10
        assert result.trend == Trend.DECREASING
        assert result.confidence == pytest.approx(0.95)

    def test_reliable_history_used_when_live_is_thin(self):
        live = LiveSignal(queue_size=30, weight=0.4, trend=Trend.INCREASING)
        historical = HistoricalSignal(average_wait=12.4, average_queue=2.6, weight=0.8)
        result = blend(live, historical, 5)
        assert result.estimated_wait_time == 12
        assert result.current_queue_size == 3
        assert result.trend == Trend.INCREASING
        assert result.confidence == pytest.approx(0.9)

    def test_partial_blend_applies_service_time_to_live_term_only(self):
        live = LiveSignal(queue_size=4, weight=0.4)
        historical = HistoricalSignal(average_wait=30, average_queue=10, weight=0.4)
        result = blend(live, historical, 5)
        # 4*5*0.5 + 30*0.5 = 25, queue 4*0.5 + 10*0.5 = 7
        assert result.estimated_wait_time == 25
        assert result.current_queue_size == 7
        assert result.confidence == pytest.approx(0.7)

    def test_live_weight_of_exactly_half_is_not_reliable(self):
        live = LiveSignal(queue_size=10, weight=0.5)
        historical = HistoricalSignal(average_wait=100, average_queue=20, weight=0.5)
        result = blend(live, historical, 2)
        # blend branch: 10*2*0.5 + 100*0.5 = 60
        assert result.estimated_wait_time == 60
        assert result.current_queue_size == 15

    def test_only_live_partial(self):
        live = LiveSignal(queue_size=3, weight=0.4)
        result = blend(live, HistoricalSignal(), 5)
        assert result.estimated_wait_time == 15
        assert result.confidence == pytest.approx(0.5)

    def test_rounds_halves_up(self):
        live = LiveSignal(queue_size=2.5, weight=1.0)
        result = blend(live, HistoricalSignal(), 1)
        assert result.estimated_wait_time == 3
        assert result.current_queue_size == 3

    def test_confidence_bounds(self):
        rng = random.Random(7)
        for _ in range(300):
            live = LiveSignal(
                queue_size=rng.uniform(0, 50),
                weight=rng.choice([0, 0.2, 0.4, 0.6, 0.8, 1.0]),
            )
            historical = HistoricalSignal(
                average_wait=rng.uniform(0, 200),
                average_queue=rng.uniform(0, 50),
                weight=rng.choice([0, 0.15, 0.3, 0.5, 0.75, 1.0]),
            )
            result = blend(live, historical, rng.randint(1, 20))
            assert 0.1 <= result.confidence <= 0.95
            assert (result.confidence == 0.1) == (live.weight + historical.weight == 0)
            assert result.estimated_wait_time >= 0


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "value,digits,expected",
        [(2.5, 0, 3), (3.5, 0, 4), (2.4999, 0, 2), (0.875, 2, 0.88), (0.35, 2, 0.35), (0.95, 2, 0.95)],
    )
    def test_values(self, value, digits, expected):
        assert round_half_up(value, digits) == pytest.approx(expected)


# =============================================================================
# Incremental slot update
# =============================================================================

class TestFoldIntoSlot:
    """Tests for fold_into_slot."""

    def test_first_observation_creates_slot(self):
        update = fold_into_slot(None, 6, 5)
        assert update.sample_count == 1
        assert update.average_wait_time == 30
        assert update.average_people_count == 6

    def test_existing_slot(self):
        slot = make_slot(LOCATION_ID, 3, 10, 20.0, 4.0, 3)
        update = fold_into_slot(slot, 8, 5)
        assert update.sample_count == 4
        assert update.average_wait_time == pytest.approx((20 * 3 + 40) / 4)
        assert update.average_people_count == pytest.approx((4 * 3 + 8) / 4)

    def test_matches_batch_mean(self):
        rng = random.Random(3)
        people = [rng.randint(0, 40) for _ in range(250)]
        service_time = 7

        slot = None
        for p in people:
            update = fold_into_slot(slot, p, service_time)
            slot = make_slot(
                LOCATION_ID, 3, 10,
                update.average_wait_time,
                update.average_people_count,
                update.sample_count,
            )

        assert slot.sample_count == len(people)
        assert slot.average_people_count == pytest.approx(sum(people) / len(people))
        assert slot.average_wait_time == pytest.approx(sum(p * service_time for p in people) / len(people))


# =============================================================================
# Best time to visit
# =============================================================================

class TestRankBestTimes:
    """Tests for rank_best_times."""

    def test_empty(self):
        assert rank_best_times([]) == []

    def test_filters_sorts_and_limits(self):
        slots = [
            make_slot(LOCATION_ID, 1, 9, 45.0, 9.0, 5),
            make_slot(LOCATION_ID, 1, 10, 5.0, 1.0, 1),  # too few samples
            make_slot(LOCATION_ID, 2, 14, 12.6, 2.0, 2),
            make_slot(LOCATION_ID, 3, 8, 30.0, 6.0, 4),
            make_slot(LOCATION_ID, 4, 16, 8.0, 1.5, 9),
            make_slot(LOCATION_ID, 5, 11, 60.0, 12.0, 3),
            make_slot(LOCATION_ID, 6, 12, 90.0, 18.0, 3),
        ]
        best = rank_best_times(slots)

        assert [(b.day_of_week, b.hour) for b in best] == [(4, 16), (2, 14), (3, 8), (1, 9), (5, 11)]
        assert best[1].estimated_wait == 13
