# spinwheel/services/prize_selector.py
from __future__ import annotations

import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..utils.money import as_number


@dataclass(frozen=True)
class PrizeOption:
    """Immutable snapshot of a prize row, safe to hold across a rolled-back transaction."""
    id: int
    name: str
    type: str
    value: Decimal
    weight: float
    stock: Optional[int]
    active: bool

    @classmethod
    def from_model(cls, p) -> "PrizeOption":
        return cls(
            id=p.id, name=p.name, type=p.type, value=Decimal(str(p.value or 0)),
            weight=float(p.weight or 0), stock=p.stock, active=bool(p.active),
        )

    @property
    def eligible(self) -> bool:
        return self.active and self.weight > 0 and (self.stock is None or self.stock > 0)

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "type": self.type, "value": as_number(self.value)}


def eligible_pool(prizes: Iterable[PrizeOption]) -> list[PrizeOption]:
    return sorted((p for p in prizes if p.eligible), key=lambda p: p.id)


def pick_prize(prizes: Sequence[PrizeOption], rng: random.Random | None = None) -> PrizeOption | None:
    """Weighted pick from a single uniform draw; None when nothing is eligible.

    The walk is over prizes ordered by id, so one draw maps to exactly one prize
    and the chance of each prize is ``weight / sum(weights)``.
    """
    pool = eligible_pool(prizes)
    if not pool:
        return None
    total = sum(p.weight for p in pool)
    r = (rng or random).random() * total

    acc = 0.0
    for p in pool:
        acc += p.weight
        if r < acc:
            return p
    # float accumulation can land r == total
    return pool[-1]
