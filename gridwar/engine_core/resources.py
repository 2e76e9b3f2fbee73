"""
Resource Ledger - Per-player resource store.

Quantities never go negative: every debit is preceded by an affordability
check across all kinds in the requested bundle, so a spend either applies
in full or not at all.
"""

from __future__ import annotations
from enum import Enum
from typing import Mapping


class ResourceKind(Enum):
    """Resource kinds."""
    GOLD = "gold"
    WOOD = "wood"
    STONE = "stone"
    FOOD = "food"


CostBundle = Mapping[ResourceKind, int]


def _check_bundle(bundle: CostBundle):
    for kind, amount in bundle.items():
        if amount < 0:
            raise ValueError(f"Negative amount {amount} for {kind.value}")


class ResourceLedger:
    """Mapping of resource kind to quantity, plus per-kind production rates."""

    def __init__(
        self,
        quantities: Mapping[ResourceKind, int] | None = None,
        production_rates: Mapping[ResourceKind, int] | None = None,
    ):
        self._quantities: dict[ResourceKind, int] = {}
        self._rates: dict[ResourceKind, int] = dict(production_rates or {})
        if quantities:
            _check_bundle(quantities)
            self._quantities.update(quantities)

    @classmethod
    def with_defaults(cls, starting_amount: int = 500, base_rate: int = 10) -> ResourceLedger:
        """Every kind starts at starting_amount and produces base_rate per tick."""
        return cls(
            quantities={kind: starting_amount for kind in ResourceKind},
            production_rates={kind: base_rate for kind in ResourceKind},
        )

    def quantity(self, kind: ResourceKind) -> int:
        return self._quantities.get(kind, 0)

    def credit(self, kind: ResourceKind, amount: int):
        if amount < 0:
            raise ValueError(f"Cannot credit negative amount {amount} of {kind.value}")
        self._quantities[kind] = self.quantity(kind) + amount

    def can_afford(self, cost: CostBundle) -> bool:
        _check_bundle(cost)
        return all(self.quantity(kind) >= amount for kind, amount in cost.items())

    def spend(self, cost: CostBundle) -> bool:
        """Debit the whole bundle, or nothing at all. Returns whether it was debited."""
        if not self.can_afford(cost):
            return False
        for kind, amount in cost.items():
            self._quantities[kind] = self.quantity(kind) - amount
        return True

    def production_rate(self, kind: ResourceKind) -> int:
        return self._rates.get(kind, 0)

    def set_production_rate(self, kind: ResourceKind, rate: int):
        if rate < 0:
            raise ValueError(f"Production rate must be non-negative, got {rate}")
        self._rates[kind] = rate

    def apply_production_tick(self):
        """Credit every known kind with its base production rate."""
        for kind in set(self._quantities) | set(self._rates):
            self.credit(kind, self.production_rate(kind))

    def snapshot(self) -> dict[str, int]:
        return {kind.value: self.quantity(kind) for kind in ResourceKind}

    def __repr__(self) -> str:
        return f"ResourceLedger({self.snapshot()})"


def format_cost(cost: CostBundle) -> str:
    """'50 gold, 40 wood' style rendering."""
    return ", ".join(f"{amount} {kind.value}" for kind, amount in cost.items())
