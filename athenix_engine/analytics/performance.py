from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from athenix_engine.core.models import AnalysisResult


class OutcomeStatus(str, Enum):
    TP = 'TP'
    SL = 'SL'
    BE = 'BE'
    RUNNING = 'RUNNING'
    NOT_TAKEN = 'NOT_TAKEN'
    INVALID = 'INVALID'


CONFIDENCE_BUCKETS: tuple[tuple[str, float], ...] = (
    ('High', 85.0),
    ('Good', 70.0),
    ('Moderate', 55.0),
)
LOW_BUCKET = 'Low'
BUCKET_ORDER: tuple[str, ...] = tuple(name for name, _ in CONFIDENCE_BUCKETS) + (LOW_BUCKET,)
# Outcomes that closed the trade; RUNNING, NOT_TAKEN and INVALID never count towards win rate.
CLOSED_OUTCOMES = (OutcomeStatus.TP, OutcomeStatus.SL, OutcomeStatus.BE)

_COLUMNS = ['decision', 'outcome', 'confidence', 'bucket', 'execution_mode', 'instrument']


def confidence_bucket(score: float) -> str:
    for name, floor in CONFIDENCE_BUCKETS:
        if score >= floor:
            return name
    return LOW_BUCKET


@dataclass(frozen=True, slots=True)
class BucketPerformance:
    total: int
    wins: int

    @property
    def win_rate(self) -> float:
        return round(self.wins / self.total, 4) if self.total else 0.0


@dataclass(frozen=True, slots=True)
class PerformanceSummary:
    total_analyses: int
    total_with_feedback: int
    outcomes: dict[str, int]
    win_rate: float
    average_confidence_score: float
    confidence_buckets: dict[str, BucketPerformance]
    by_decision: dict[str, int]
    by_execution_mode: dict[str, int]
    by_instrument: dict[str, int]


def _frame(records: Iterable[tuple[AnalysisResult, OutcomeStatus | None]]) -> pd.DataFrame:
    rows = []
    for result, outcome in records:
        confidence = result.trade_plan.confidence_score if result.trade_plan else 0
        rows.append(
            {
                'decision': result.final_decision.value,
                'outcome': OutcomeStatus(outcome).value if outcome is not None else None,
                'confidence': confidence,
                'bucket': confidence_bucket(confidence),
                'execution_mode': result.execution_mode.value if result.execution_mode else 'unknown',
                'instrument': result.instrument or 'unknown',
            }
        )
    return pd.DataFrame(rows, columns=_COLUMNS)


def _counts(series: pd.Series) -> dict[str, int]:
    return {str(key): int(value) for key, value in sorted(series.value_counts().items())}


def summarize_outcomes(records: Iterable[tuple[AnalysisResult, OutcomeStatus | None]]) -> PerformanceSummary:
    """Aggregate analysis results with their later-arriving outcome feedback.

    ``records`` pairs each result with its feedback status, or ``None`` while no
    feedback has been recorded. Pure: the caller owns loading from the history
    store.
    """
    frame = _frame(records)
    feedback = frame[frame['outcome'].notna()]

    outcome_counts = feedback['outcome'].value_counts()
    outcomes = {status.value: int(outcome_counts.get(status.value, 0)) for status in OutcomeStatus}
    closed = sum(outcomes[status.value] for status in CLOSED_OUTCOMES)
    win_rate = round(outcomes[OutcomeStatus.TP.value] / closed, 4) if closed else 0.0

    wins = feedback.assign(is_win=feedback['outcome'] == OutcomeStatus.TP.value)
    grouped = wins.groupby('bucket')['is_win'].agg(['size', 'sum'])
    buckets = {
        name: BucketPerformance(
            total=int(grouped.loc[name, 'size']) if name in grouped.index else 0,
            wins=int(grouped.loc[name, 'sum']) if name in grouped.index else 0,
        )
        for name in BUCKET_ORDER
    }

    average_confidence = round(float(frame['confidence'].mean()), 2) if len(frame) else 0.0
    return PerformanceSummary(
        total_analyses=len(frame),
        total_with_feedback=len(feedback),
        outcomes=outcomes,
        win_rate=win_rate,
        average_confidence_score=average_confidence,
        confidence_buckets=buckets,
        by_decision=_counts(frame['decision']),
        by_execution_mode=_counts(frame['execution_mode']),
        by_instrument=_counts(frame['instrument']),
    )
