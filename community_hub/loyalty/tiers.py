"""
Membership tier table.

Tiers partition cumulative spend [0, inf) into contiguous, non-overlapping
brackets. Each bracket carries the currency value of one point and the
member discount applied to future bookings. Pure lookups, no DB access.
"""

from bisect import bisect_right
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Sequence

from community_hub.config import TierConfig
from community_hub.exceptions import InvalidInput


def to_decimal(value, field: str = "value") -> Decimal:
    """Coerce int/float/str/Decimal into a finite Decimal"""
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite, got {value!r}")
    return result


@dataclass(frozen=True)
class Tier:
    name: str
    min_spend: Decimal
    max_spend: Optional[Decimal]  # exclusive; None for the top tier
    point_value: Decimal
    discount_percent: Decimal = Decimal('0')

    def contains(self, spend: Decimal) -> bool:
        if spend < self.min_spend:
            return False
        return self.max_spend is None or spend < self.max_spend


class TierTable:
    """Ordered, validated list of tiers"""

    def __init__(self, tiers: Sequence[Tier]):
        self._tiers: List[Tier] = list(tiers)
        self._validate()
        self._mins = [tier.min_spend for tier in self._tiers]

    @classmethod
    def from_config(cls, rows: Iterable[TierConfig]) -> "TierTable":
        return cls([
            Tier(
                name=row.name,
                min_spend=row.min_spend,
                max_spend=row.max_spend,
                point_value=row.point_value,
                discount_percent=row.discount_percent,
            )
            for row in rows
        ])

    def _validate(self) -> None:
        if not self._tiers:
            raise InvalidInput("Tier table must contain at least one tier")

        names = [tier.name for tier in self._tiers]
        if len(set(names)) != len(names):
            raise InvalidInput("Tier names must be unique")

        if self._tiers[0].min_spend != 0:
            raise InvalidInput("First tier must start at spend 0")

        for index, tier in enumerate(self._tiers):
            is_last = index == len(self._tiers) - 1
            if tier.point_value <= 0:
                raise InvalidInput(f"Tier '{tier.name}' must have a positive point value")
            if not Decimal('0') <= tier.discount_percent <= Decimal('100'):
                raise InvalidInput(f"Tier '{tier.name}' discount must be between 0 and 100")
            if tier.max_spend is None:
                if not is_last:
                    raise InvalidInput(f"Only the last tier may be unbounded, not '{tier.name}'")
                continue
            if is_last:
                raise InvalidInput(f"Last tier '{tier.name}' must be unbounded")
            if tier.max_spend <= tier.min_spend:
                raise InvalidInput(f"Tier '{tier.name}' has an empty spend range")
            following = self._tiers[index + 1]
            if following.min_spend != tier.max_spend:
                raise InvalidInput(
                    f"Tier '{following.name}' must start where '{tier.name}' ends "
                    f"({tier.max_spend}), not at {following.min_spend}"
                )

    @property
    def tiers(self) -> List[Tier]:
        return list(self._tiers)

    @property
    def base_tier(self) -> Tier:
        return self._tiers[0]

    def get(self, name: str) -> Optional[Tier]:
        for tier in self._tiers:
            if tier.name == name:
                return tier
        return None

    def tier_for(self, spend) -> Tier:
        """Return the single tier whose range contains `spend`"""
        spend = to_decimal(spend, "spend")
        if spend < 0:
            raise InvalidInput(f"Spend must be non-negative, got {spend}")
        return self._tiers[bisect_right(self._mins, spend) - 1]

    def next_tier(self, tier: Tier) -> Optional[Tier]:
        index = self._tiers.index(tier)
        if index + 1 < len(self._tiers):
            return self._tiers[index + 1]
        return None

    def amount_to_next_tier(self, spend) -> Optional[Decimal]:
        current = self.tier_for(spend)
        following = self.next_tier(current)
        if following is None:
            return None
        return following.min_spend - to_decimal(spend, "spend")

    def progress(self, spend) -> float:
        """Fraction of the way from the current tier's floor to the next tier's floor"""
        current = self.tier_for(spend)
        following = self.next_tier(current)
        if following is None:
            return 1.0
        span = following.min_spend - current.min_spend
        fraction = (to_decimal(spend, "spend") - current.min_spend) / span
        return float(min(max(fraction, Decimal('0')), Decimal('1')))
