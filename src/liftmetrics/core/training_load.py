"""
Acute:chronic training-load summarization and readiness helpers.

Acute load is the last week of session workload, chronic load the last
four weeks.  Their ratio (acute over the chronic weekly average) flags
sudden spikes or drops in training stress.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal, Sequence

from .config import DEFAULT_CONFIG, READINESS_HIGH_SCORE, READINESS_LOW_SCORE, EngineConfig
from .models import Session, TrainingLoadSummary, WeeklyLoad
from .snapshot import session_workload
from .units import clamp, coerce_number, iso_week_key, round_to

ReadinessLevel = Literal["low", "steady", "high"]

SECONDS_PER_DAY = 86400.0


def _trend_weeks(now: datetime, chronic_days: int) -> list[str]:
    """ISO week keys covering [now − chronic_days, now], oldest first."""
    keys: list[str] = []
    day = (now - timedelta(days=chronic_days)).date()
    end = now.date()
    while day <= end:
        key = iso_week_key(day)
        if key not in keys:
            keys.append(key)
        day += timedelta(days=7)
    last = iso_week_key(end)
    if last not in keys:
        keys.append(last)
    return keys


def empty_summary(now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> TrainingLoadSummary:
    """Neutral summary for a user with no sessions in the window."""
    return TrainingLoadSummary(
        acute_load=0.0,
        chronic_load=0.0,
        chronic_weekly_avg=0.0,
        load_ratio=0.0,
        status="balanced",
        high_risk=False,
        days_since_last=None,
        insufficient_data=True,
        is_initial_phase=True,
        weekly_trend=tuple(
            WeeklyLoad(week=w, load=0.0) for w in _trend_weeks(now, config.chronic_window_days)
        ),
    )


def summarize_training_load(
    sessions: Sequence[Session],
    now: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TrainingLoadSummary:
    """
    Summarize a user's recent training stress.

    Session workloads are first totalled per calendar day; a day belongs to
    a window when it lies in [now − window, now].

    acute   = Σ daily totals over the last 7 days
    chronic = Σ daily totals over the last 28 days
    chronic_weekly_avg = chronic / min(28, days_of_data) × 7
    load_ratio = acute / chronic_weekly_avg

    Completed sessions contribute their snapshot workload.  Sessions dated
    after ``now`` or without a start time are ignored.

    Args:
        sessions: The user's sessions (any order)
        now: Reference time
        config: Windows and thresholds

    Returns:
        TrainingLoadSummary; a neutral one when nothing is in the window
    """
    dated = [
        s for s in sessions
        if s.started_at is not None and s.started_at <= now
    ]

    daily: dict[date, float] = {}
    for s in dated:
        day = s.started_at.date()
        daily[day] = daily.get(day, 0.0) + session_workload(s, config)

    today = now.date()
    in_window = {d: load for d, load in daily.items() if (today - d).days <= config.chronic_window_days}
    if not in_window:
        return empty_summary(now, config)

    chronic = sum(in_window.values())
    acute = sum(load for d, load in in_window.items() if (today - d).days <= config.acute_window_days)

    loads: dict[str, float] = {}
    for d, load in in_window.items():
        week = iso_week_key(d)
        loads[week] = loads.get(week, 0.0) + load

    first = min(s.started_at for s in dated)
    last = max(s.started_at for s in dated)
    days_of_data = max(1, (today - first.date()).days + 1)
    chronic_weekly_avg = chronic / min(config.chronic_window_days, days_of_data) * 7

    insufficient = chronic_weekly_avg <= 0
    ratio = 0.0 if insufficient else acute / chronic_weekly_avg

    history_days = (now - first).total_seconds() / SECONDS_PER_DAY
    initial = (
        history_days < config.chronic_window_days
        or len(dated) < config.min_sessions_for_ratio
    )

    status = "balanced"
    high_risk = False
    if not initial and not insufficient:
        if ratio >= config.overreaching_caution_ratio:
            status = "overreaching"
            high_risk = ratio >= config.overreaching_high_risk_ratio
        elif ratio <= config.undertraining_ratio and chronic > acute:
            status = "undertraining"

    days_since_last = round_to(max(0.0, (now - last).total_seconds() / SECONDS_PER_DAY), 1)

    trend = tuple(
        WeeklyLoad(week=w, load=round_to(loads.get(w, 0.0), 1))
        for w in _trend_weeks(now, config.chronic_window_days)
    )

    return TrainingLoadSummary(
        acute_load=round_to(acute, 1),
        chronic_load=round_to(chronic, 1),
        chronic_weekly_avg=round_to(chronic_weekly_avg, 1),
        load_ratio=round_to(ratio, 2),
        status=status,
        high_risk=high_risk,
        days_since_last=days_since_last,
        insufficient_data=insufficient,
        is_initial_phase=initial,
        weekly_trend=trend,
    )


def load_based_readiness(summary: TrainingLoadSummary) -> ReadinessLevel:
    """
    Readiness implied by training load alone.

    Overreaching or a session within the last day → low; undertraining → high.
    """
    if summary.status == "overreaching":
        return "low"
    if summary.status == "undertraining":
        return "high"
    if summary.days_since_last is not None and summary.days_since_last <= 1:
        return "low"
    return "steady"


@dataclass(frozen=True)
class ReadinessSurvey:
    """Morning check-in answers, each on a 1–5 scale."""

    sleep: float
    soreness: float
    stress: float
    motivation: float


def readiness_score(survey: ReadinessSurvey) -> int | None:
    """
    Map a readiness survey onto 0–100.

    Sleep and motivation count up, soreness and stress count down:
        raw = sleep + motivation + (6 − soreness) + (6 − stress)   (4..20)
        score = (raw − 4) / 16 × 100

    Returns:
        Score, or None when any answer is missing or not numeric
    """
    answers = [
        coerce_number(survey.sleep),
        coerce_number(survey.soreness),
        coerce_number(survey.stress),
        coerce_number(survey.motivation),
    ]
    if any(a is None for a in answers):
        return None
    sleep, soreness, stress, motivation = (clamp(a, 1, 5) for a in answers)
    raw = sleep + motivation + (6 - soreness) + (6 - stress)
    score = (raw - 4) / 16 * 100
    return int(round_to(clamp(score, 0, 100), 0))


def readiness_level(score: int | None) -> ReadinessLevel:
    """Bucket a readiness score; a missing score is steady."""
    if score is None or (isinstance(score, float) and math.isnan(score)):
        return "steady"
    if score >= READINESS_HIGH_SCORE:
        return "high"
    if score < READINESS_LOW_SCORE:
        return "low"
    return "steady"


def readiness_intensity(level: ReadinessLevel) -> str:
    """Session intensity label suggested for a readiness level."""
    if level == "low":
        return "low"
    if level == "high":
        return "high"
    return "moderate"
