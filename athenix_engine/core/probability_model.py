from __future__ import annotations

from dataclasses import dataclass

from athenix_engine.core.models import Probabilities, Scenario

DOMINANT_FLOOR = 50
DOMINANT_CEILING = 70


@dataclass(frozen=True, slots=True)
class ScoreTier:
    scenario: Scenario
    floor: int
    ceiling: int

    def contains(self, total_score: int) -> bool:
        return self.floor <= total_score <= self.ceiling


TIERS: tuple[ScoreTier, ...] = (
    ScoreTier(Scenario.IRL_ONLY, 20, 26),
    ScoreTier(Scenario.IRL_TO_ERL, 27, 33),
    ScoreTier(Scenario.EXPANSION, 34, 40),
)
MIN_MODELED_SCORE = TIERS[0].floor
MAX_MODELED_SCORE = TIERS[-1].ceiling


def tier_for_score(total_score: int) -> ScoreTier:
    for tier in TIERS:
        if tier.contains(total_score):
            return tier
    raise ValueError(f'total_score {total_score} outside modeled range [{MIN_MODELED_SCORE}, {MAX_MODELED_SCORE}]')


def scenario_for_score(total_score: int) -> Scenario:
    return tier_for_score(total_score).scenario


class OutcomeProbabilityModel:
    """Maps a confluence total onto the three-scenario outcome distribution.

    Integer arithmetic only. The dominant share climbs linearly from 50 at the
    tier floor to 70 at the ceiling; the other two split the remainder, so the
    triple always sums to 100 and the tier's scenario is strictly the largest.
    Inside the middle tier the remainder tilts from ``irl_only`` towards
    ``expansion`` as the score rises.
    """

    def probabilities(self, total_score: int) -> Probabilities:
        tier = tier_for_score(total_score)
        step = total_score - tier.floor
        span = tier.ceiling - tier.floor
        dominant = DOMINANT_FLOOR + (step * (DOMINANT_CEILING - DOMINANT_FLOOR)) // span
        rest = 100 - dominant

        if tier.scenario is Scenario.IRL_ONLY:
            irl_to_erl = rest * 2 // 3
            return Probabilities(irl_only=dominant, irl_to_erl=irl_to_erl, expansion=rest - irl_to_erl)
        if tier.scenario is Scenario.IRL_TO_ERL:
            expansion = rest * (step + 1) // (span + 2)
            return Probabilities(irl_only=rest - expansion, irl_to_erl=dominant, expansion=expansion)
        irl_to_erl = rest * 2 // 3
        return Probabilities(irl_only=rest - irl_to_erl, irl_to_erl=irl_to_erl, expansion=dominant)
