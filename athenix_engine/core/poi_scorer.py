from __future__ import annotations

from athenix_engine.core.models import LayerScore, POIObservation, RejectionReason
from athenix_engine.core.signal_math import signal_to_score


class POIScorer:
    """Layer 2: point of interest quality.

    A POI is tradeable only when it originated the range, caused the confirmed
    break, sits at a range boundary and has not been mitigated yet.
    """

    def score(self, poi: POIObservation) -> LayerScore:
        failures = self.failed_conditions(poi)
        if failures:
            return LayerScore(0, f'POI invalid: {", ".join(failures)}', RejectionReason.INVALID_POI)
        score = signal_to_score(poi.strength_signal)
        return LayerScore(score, f'Unmitigated range-origin POI at the boundary, strength {score}/10')

    @staticmethod
    def failed_conditions(poi: POIObservation) -> list[str]:
        failures: list[str] = []
        if not poi.originates_range:
            failures.append('does not originate the range')
        if not poi.caused_confirmed_break:
            failures.append('did not cause the confirmed break')
        if poi.is_mitigated:
            failures.append('already mitigated')
        if not poi.at_range_boundary:
            failures.append('not at a range boundary')
        return failures
