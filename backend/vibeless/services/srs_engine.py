"""SM-2 间隔重复算法实现"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum

from ..core.errors import InvalidInput
from ..models.flashcard import Flashcard

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
MIN_EASE_FACTOR = 1.3
# Intervals saturate here so next_review stays a representable date
MAX_INTERVAL_DAYS = 36500


class Rating(IntEnum):
    """Review buttons and the quality each one submits."""

    AGAIN = 1
    HARD = 3
    GOOD = 4
    EASY = 5


@dataclass(frozen=True)
class ScheduleUpdate:
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review: datetime
    last_review: datetime


def validate_quality(quality: object) -> int:
    """Return ``quality`` as an int in [0, 5] or raise InvalidInput."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInput(f"quality must be {MIN_QUALITY}-{MAX_QUALITY}, got {quality}")
    return int(quality)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SRSEngine:
    """SuperMemo SM-2 算法。"""

    @staticmethod
    def calculate(
        quality: int,
        ease_factor: float,
        interval_days: int,
        repetitions: int,
        now: datetime,
    ) -> ScheduleUpdate:
        """
        计算一次复习后的调度状态。

        quality: 0-5
            0 = 完全遗忘
            1 = 回忆错误
            2 = 回忆错误但看到答案后觉得熟悉
            3 = 回忆正确但很费力
            4 = 回忆正确稍有犹豫
            5 = 完美回忆
        """
        quality = validate_quality(quality)

        if quality < PASSING_QUALITY:
            # 回忆失败，重置；ease factor 不变
            new_repetitions = 0
            new_interval = 1
            new_ease = ease_factor
        else:
            new_repetitions = repetitions + 1
            if new_repetitions == 1:
                new_interval = 1
            elif new_repetitions == 2:
                new_interval = 6
            else:
                new_interval = min(_round_half_up(interval_days * ease_factor), MAX_INTERVAL_DAYS)

            lapse = MAX_QUALITY - quality
            new_ease = ease_factor + (0.1 - lapse * (0.08 + lapse * 0.02))
            # Floor only; SM-2 has no ceiling
            if new_ease < MIN_EASE_FACTOR:
                new_ease = MIN_EASE_FACTOR

        return ScheduleUpdate(
            ease_factor=new_ease,
            interval_days=new_interval,
            repetitions=new_repetitions,
            next_review=now + timedelta(days=new_interval),
            last_review=now,
        )

    @staticmethod
    def review(card: Flashcard, quality: int, now: datetime) -> ScheduleUpdate:
        return SRSEngine.calculate(quality, card.ease_factor, card.interval_days, card.repetitions, now)
