from athenix_engine.analytics.performance import (
    BucketPerformance,
    OutcomeStatus,
    PerformanceSummary,
    confidence_bucket,
    summarize_outcomes,
)

__all__ = [
    'BucketPerformance',
    'OutcomeStatus',
    'PerformanceSummary',
    'confidence_bucket',
    'summarize_outcomes',
]
