from datetime import datetime, timedelta, timezone

import pytest

from vibeless.core.errors import InvalidInput
from vibeless.services.srs_engine import MAX_INTERVAL_DAYS, MIN_EASE_FACTOR, Rating, SRSEngine, validate_quality

NOW = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _run(qualities, ease=2.5, interval=0, reps=0):
    update = None
    for q in qualities:
        update = SRSEngine.calculate(q, ease, interval, reps, NOW)
        ease, interval, reps = update.ease_factor, update.interval_days, update.repetitions
    return update


def test_first_success_from_new_card():
    update = SRSEngine.calculate(5, 2.5, 0, 0, NOW)
    assert update.repetitions == 1
    assert update.interval_days == 1
    assert update.ease_factor == pytest.approx(2.6)
    assert update.next_review == NOW + timedelta(days=1)
    assert update.last_review == NOW


def test_second_success_is_six_days():
    update = _run([5, 5])
    assert update.repetitions == 2
    assert update.interval_days == 6
    assert update.ease_factor == pytest.approx(2.7)


def test_third_success_uses_previous_interval_and_ease():
    # 6 * 2.7 = 16.2
    update = _run([5, 5, 5])
    assert update.repetitions == 3
    assert update.interval_days == 16
    assert update.ease_factor == pytest.approx(2.8)


def test_interval_rounds_half_up():
    update = SRSEngine.calculate(4, 2.5, 5, 2, NOW)
    assert update.interval_days == 13


@pytest.mark.parametrize("quality", [0, 1, 2])
def test_failure_resets_and_keeps_ease(quality):
    update = SRSEngine.calculate(quality, 2.18, 40, 7, NOW)
    assert update.repetitions == 0
    assert update.interval_days == 1
    assert update.ease_factor == 2.18
    assert update.next_review == NOW + timedelta(days=1)


def test_quality_four_keeps_ease():
    update = SRSEngine.calculate(4, 2.5, 0, 0, NOW)
    assert update.ease_factor == pytest.approx(2.5)


def test_ease_never_drops_below_floor():
    ease, interval, reps = 2.5, 0, 0
    for q in [3, 3, 0, 3, 3, 3, 1, 3, 3, 3, 3, 3, 2, 3]:
        update = SRSEngine.calculate(q, ease, interval, reps, NOW)
        ease, interval, reps = update.ease_factor, update.interval_days, update.repetitions
        assert ease >= MIN_EASE_FACTOR
    assert ease == MIN_EASE_FACTOR


def test_ease_has_no_ceiling():
    update = _run([5] * 20)
    assert update.ease_factor == pytest.approx(4.5)
    assert update.interval_days == MAX_INTERVAL_DAYS
    assert update.next_review == NOW + timedelta(days=MAX_INTERVAL_DAYS)


def test_interval_saturates():
    update = SRSEngine.calculate(5, 3.0, 20000, 9, NOW)
    assert update.interval_days == MAX_INTERVAL_DAYS
    assert update.repetitions == 10
    assert update.ease_factor == pytest.approx(3.1)

    below = SRSEngine.calculate(4, 2.0, 10000, 9, NOW)
    assert below.interval_days == 20000


def test_next_review_is_last_review_plus_interval():
    ease, interval, reps = 2.5, 0, 0
    for q in [5, 4, 3, 5, 1, 4, 4]:
        update = SRSEngine.calculate(q, ease, interval, reps, NOW)
        assert update.next_review == update.last_review + timedelta(days=update.interval_days)
        ease, interval, reps = update.ease_factor, update.interval_days, update.repetitions


@pytest.mark.parametrize("quality", [-1, 6, 10, True, 2.5, "4", None])
def test_invalid_quality_rejected(quality):
    with pytest.raises(InvalidInput):
        validate_quality(quality)
    with pytest.raises(InvalidInput):
        SRSEngine.calculate(quality, 2.5, 0, 0, NOW)


def test_rating_maps_to_quality():
    assert [int(r) for r in Rating] == [1, 3, 4, 5]
    assert validate_quality(Rating.GOOD) == 4
    assert SRSEngine.calculate(Rating.AGAIN, 2.5, 6, 2, NOW).repetitions == 0
