"""
Wait-time prediction math.

Pure functions, no I/O. Three pieces:

1. Live signal: recent check-ins, weighted by recency (exponential decay),
   give the current queue size. Their count gives a reliability weight,
   and comparing the newer half against the older half gives a trend.
2. Historical slot: the running averages of the current day/hour bucket,
   with a reliability weight that grows with the sample count.
3. Blend: a priority-tiered combination. Reliable live data wins, then
   reliable history, otherwise a proportional blend of both.

The incremental mean used to fold a check-in into a time slot also lives
here so the storage layer only ever sees finished numbers.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from queuepulse.models import Checkin, TimeSlot

# Live signal
DECAY_MINUTES = 30.0  # a 30 minute old report weighs ~37% of a fresh one
LIVE_FULL_CONFIDENCE_COUNT = 5
TREND_MIN_CHECKINS = 3
TREND_THRESHOLD = 2  # people

# Historical slot
HISTORY_FULL_CONFIDENCE_SAMPLES = 20
HISTORY_MIN_SAMPLES = 3

# Blend
RELIABLE_WEIGHT = 0.5
CONFIDENCE_FLOOR = 0.3
CONFIDENCE_CEILING = 0.95
NO_SIGNAL_CONFIDENCE = 0.1

# Best time to visit
BEST_TIME_MIN_SAMPLES = 2
BEST_TIME_LIMIT = 5


class Trend(str, Enum):
    """Short-term direction of reported queue size."""
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass
class LiveSignal:
    """Aggregate of recent check-ins."""
    queue_size: float = 0.0
    weight: float = 0.0
    trend: Trend = Trend.STABLE


@dataclass
class HistoricalSignal:
    """Aggregate of the current day/hour time slot."""
    average_wait: float = 0.0
    average_queue: float = 0.0
    weight: float = 0.0


@dataclass
class PredictionResult:
    """Final estimate served to clients and written to the audit trail."""
    estimated_wait_time: int
    confidence: float
    trend: Trend
    current_queue_size: int


@dataclass
class SlotUpdate:
    """New values for a time slot after folding in one observation."""
    average_wait_time: float
    average_people_count: float
    sample_count: int


@dataclass
class BestTime:
    """A historically quiet time slot."""
    hour: int
    day_of_week: int
    estimated_wait: int


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3), unlike Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _age_minutes(created_at: datetime, now: datetime) -> float:
    # Clock skew can put a check-in slightly in the future
    return max((now - created_at).total_seconds() / 60.0, 0.0)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def calculate_trend(checkins: Sequence[Checkin]) -> Trend:
    """
    Classify the trend of check-ins ordered newest first.

    The newest ceil(n/2) reports are compared against the rest using
    plain (unweighted) means. Differences within TREND_THRESHOLD people
    are noise.
    """
    if len(checkins) < TREND_MIN_CHECKINS:
        return Trend.STABLE

    split = math.ceil(len(checkins) / 2)
    recent = [c.people_ahead for c in checkins[:split]]
    older = [c.people_ahead for c in checkins[split:]]

    diff = _mean(recent) - _mean(older)

    if diff > TREND_THRESHOLD:
        return Trend.INCREASING
    if diff < -TREND_THRESHOLD:
        return Trend.DECREASING
    return Trend.STABLE


def calculate_live_signal(checkins: Sequence[Checkin], now: datetime) -> LiveSignal:
    """
    Aggregate recent check-ins (newest first) into a live signal.

    Args:
        checkins: Check-ins inside the live window, newest first
        now: Current time, naive UTC like the stored timestamps

    Returns:
        LiveSignal with recency-weighted queue size, count-based weight
        and trend
    """
    if not checkins:
        return LiveSignal()

    weighted_sum = 0.0
    weight_sum = 0.0
    for checkin in checkins:
        trust = checkin.confidence if checkin.confidence is not None else 1.0
        weight = math.exp(-_age_minutes(checkin.created_at, now) / DECAY_MINUTES) * trust
        weighted_sum += checkin.people_ahead * weight
        weight_sum += weight

    queue_size = weighted_sum / weight_sum if weight_sum > 0 else 0.0

    return LiveSignal(
        queue_size=queue_size,
        weight=min(len(checkins) / LIVE_FULL_CONFIDENCE_COUNT, 1.0),
        trend=calculate_trend(checkins),
    )


def calculate_historical_signal(slot: Optional[TimeSlot]) -> HistoricalSignal:
    """
    Turn a time slot into a historical signal.

    Slots with fewer than HISTORY_MIN_SAMPLES observations are stored
    but too noisy to use, so they contribute nothing.
    """
    if slot is None or not slot.sample_count or slot.sample_count < HISTORY_MIN_SAMPLES:
        return HistoricalSignal()

    return HistoricalSignal(
        average_wait=slot.average_wait_time or 0.0,
        average_queue=slot.average_people_count or 0.0,
        weight=min(slot.sample_count / HISTORY_FULL_CONFIDENCE_SAMPLES, 1.0),
    )


def blend(live: LiveSignal, historical: HistoricalSignal, service_time: float) -> PredictionResult:
    """
    Combine live and historical signals into a prediction.

    Args:
        live: Aggregate of recent check-ins
        historical: Aggregate of the current time slot
        service_time: Minutes per person ahead at this location

    Returns:
        PredictionResult; confidence 0.1 when there is no signal at all
    """
    total_weight = live.weight + historical.weight

    if total_weight == 0:
        return PredictionResult(
            estimated_wait_time=0,
            confidence=NO_SIGNAL_CONFIDENCE,
            trend=Trend.STABLE,
            current_queue_size=0,
        )

    if live.weight > RELIABLE_WEIGHT:
        queue_size = live.queue_size
        estimated_wait = round_half_up(queue_size * service_time)
    elif historical.weight > RELIABLE_WEIGHT:
        queue_size = historical.average_queue
        estimated_wait = round_half_up(historical.average_wait)
    else:
        live_norm = live.weight / total_weight
        hist_norm = historical.weight / total_weight

        queue_size = live.queue_size * live_norm + historical.average_queue * hist_norm
        # average_wait is already in minutes, only the live term needs service time
        estimated_wait = round_half_up(
            live.queue_size * service_time * live_norm + historical.average_wait * hist_norm
        )

    confidence = min(CONFIDENCE_FLOOR + total_weight * 0.5, CONFIDENCE_CEILING)

    return PredictionResult(
        estimated_wait_time=max(0, int(estimated_wait)),
        confidence=round_half_up(confidence, 2),
        trend=live.trend,
        current_queue_size=int(round_half_up(queue_size)),
    )


def fold_into_slot(
    slot: Optional[TimeSlot],
    people_ahead: int,
    service_time: float,
) -> SlotUpdate:
    """
    Fold one observation into a slot's running averages.

    avg' = avg * n/(n+1) + x/(n+1), applied to wait time and people
    count independently. Equivalent to the batch mean over all n+1
    observations with O(1) state.
    """
    wait_time = people_ahead * service_time

    if slot is None:
        return SlotUpdate(
            average_wait_time=float(wait_time),
            average_people_count=float(people_ahead),
            sample_count=1,
        )

    count = slot.sample_count or 0
    new_count = count + 1
    old_weight = count / new_count
    new_weight = 1 / new_count

    return SlotUpdate(
        average_wait_time=(slot.average_wait_time or 0.0) * old_weight + wait_time * new_weight,
        average_people_count=(slot.average_people_count or 0.0) * old_weight + people_ahead * new_weight,
        sample_count=new_count,
    )


def rank_best_times(slots: Sequence[TimeSlot]) -> list[BestTime]:
    """Pick the quietest time slots that have enough samples."""
    valid = [s for s in slots if (s.sample_count or 0) >= BEST_TIME_MIN_SAMPLES]
    valid.sort(key=lambda s: s.average_wait_time or 0.0)

    return [
        BestTime(
            hour=s.hour,
            day_of_week=s.day_of_week,
            estimated_wait=int(round_half_up(s.average_wait_time or 0.0)),
        )
        for s in valid[:BEST_TIME_LIMIT]
    ]
