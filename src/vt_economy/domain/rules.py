"""Rent, maintenance and decay rules for one property asset per tick.

apply_tick runs the three rules in a fixed order on one asset: rent is priced
on the condition the asset entered the tick with, decay works on the
post-damage condition, and the result carries the single condition to write.
"""

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.vt_common.datetime_utils import months_between
from src.vt_economy.domain.properties import PropertyAsset, PropertyType

MAX_CONDITION = 100
FULL_RENT_CONDITION = 80
DECAY_FLOOR = 50
DAMAGE_MIN = 5
DAMAGE_MAX = 20


def condition_factor(condition: float) -> float:
    return 1.0 if condition >= FULL_RENT_CONDITION else condition / 100


def calculate_rent(base_rent: float, condition: float) -> int:
    return math.floor(base_rent * condition_factor(condition))


def rent_due(asset: PropertyAsset, now: datetime, cycle: timedelta) -> bool:
    """Elapsed-time check, so a second tick inside the cycle collects nothing."""
    since = asset.last_rent_collected_at or asset.created_at
    return now - since >= cycle


def roll_maintenance(rng: random.Random, chance: float) -> int | None:
    """Damage points for this tick, or None when nothing broke."""
    if rng.random() >= chance:
        return None
    return rng.randint(DAMAGE_MIN, DAMAGE_MAX)


def decayed_condition(
    condition: int, purchased_at: datetime, now: datetime, rate_per_month: float
) -> int:
    """Slow wear: never below 50, and never raises a condition already under it."""
    months = months_between(purchased_at, now)
    if months < 1 or condition <= DECAY_FLOOR:
        return condition
    return max(DECAY_FLOOR, condition - math.floor(months * rate_per_month))


@dataclass(frozen=True)
class TickOutcome:
    rent: int | None          # credited rent, None if not due
    damage: int | None        # maintenance damage points, None if no event
    maintenance_cost: float   # debited with the damage
    condition: int            # condition to persist


def apply_tick(
    asset: PropertyAsset,
    ptype: PropertyType,
    now: datetime,
    rng: random.Random,
    rent_cycle: timedelta,
    maintenance_chance: float,
    decay_rate: float,
) -> TickOutcome:
    rent = None
    if rent_due(asset, now, rent_cycle):
        rent = calculate_rent(ptype.rent, asset.condition)

    condition = asset.condition
    damage = roll_maintenance(rng, maintenance_chance)
    if damage is not None:
        condition = max(0, condition - damage)

    condition = decayed_condition(condition, asset.created_at, now, decay_rate)
    return TickOutcome(
        rent=rent,
        damage=damage,
        maintenance_cost=ptype.maintenance_cost if damage is not None else 0.0,
        condition=condition,
    )
