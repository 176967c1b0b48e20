from __future__ import annotations

from athenix_engine.core.models import Bias, EntryZone, LayerScore, PremiumDiscountObservation, RejectionReason
from athenix_engine.core.signal_math import signal_to_score

REQUIRED_ZONE: dict[Bias, EntryZone] = {
    Bias.BULLISH: EntryZone.DISCOUNT,
    Bias.BEARISH: EntryZone.PREMIUM,
}


class PremiumDiscountScorer:
    """Layer 4: entry geometry relative to range equilibrium."""

    def score(self, premium_discount: PremiumDiscountObservation, bias: Bias) -> LayerScore:
        zone = premium_discount.entry_zone
        if zone is EntryZone.EQUILIBRIUM:
            return LayerScore(0, 'Entry sits at equilibrium', RejectionReason.EQUILIBRIUM_ENTRY)
        required = REQUIRED_ZONE[bias]
        if zone is not required:
            return LayerScore(
                0,
                f'{bias.value.capitalize()} setup needs a {required.value} entry, got {zone.value}',
                RejectionReason.WRONG_ZONE,
            )
        score = signal_to_score(premium_discount.distance_from_equilibrium)
        return LayerScore(score, f'Entry in {zone.value}, depth {score}/10 from equilibrium')
