from __future__ import annotations

from athenix_engine.core.models import AllocationWeight, Direction, Scenario, StructureObservation, TakeProfit

HEAVY = AllocationWeight.HEAVY
MODERATE = AllocationWeight.MODERATE
SMALL = AllocationWeight.SMALL

ALLOCATION_TABLE: dict[Scenario, tuple[AllocationWeight, AllocationWeight, AllocationWeight]] = {
    Scenario.IRL_ONLY: (HEAVY, MODERATE, SMALL),
    Scenario.IRL_TO_ERL: (MODERATE, HEAVY, SMALL),
    Scenario.EXPANSION: (SMALL, MODERATE, HEAVY),
}
TP_LEVELS: tuple[str, str, str] = ('TP1', 'TP2', 'TP3')


class TargetAllocator:
    def weights(self, dominant: Scenario) -> tuple[AllocationWeight, AllocationWeight, AllocationWeight]:
        return ALLOCATION_TABLE[dominant]

    @staticmethod
    def price_ladder(observation: StructureObservation, direction: Direction) -> tuple[float, float, float]:
        """Internal liquidity first, then the far range boundary, then ERL.

        Equilibrium and the far boundary are used only when both sit strictly
        between entry and ERL; otherwise TP1 and TP2 split the span into thirds.
        TP3 is always the ERL target.
        """
        entry = observation.candidate_entry
        target = observation.external_range_liquidity_target
        far_boundary = observation.range_high if direction is Direction.BUY else observation.range_low
        low, high = min(entry, target), max(entry, target)
        inside = sorted(
            {price for price in (observation.equilibrium, far_boundary) if low < price < high},
            key=lambda price: abs(price - entry),
        )
        if len(inside) == 2:
            return inside[0], inside[1], target
        span = target - entry
        return entry + span / 3, entry + span * 2 / 3, target

    def allocate(self, observation: StructureObservation, direction: Direction, dominant: Scenario) -> tuple[TakeProfit, ...]:
        prices = self.price_ladder(observation, direction)
        return tuple(
            TakeProfit(level=level, price=price, allocation_weight=weight)
            for level, price, weight in zip(TP_LEVELS, prices, self.weights(dominant))
        )
