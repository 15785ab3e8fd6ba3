"""Order weighing and parcel-count derivation.

Weights come in as integer grams per unit. The parcel cap is configured in
kilograms and converted with exact decimal arithmetic so that a total sitting
exactly on a multiple of the cap never rounds up into an extra parcel.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from app.core.config import settings
from app.core.enums import ParcelPolicy
from app.core.exceptions import RateValidationError
from app.schemas.rate import LineItem


@dataclass
class Parcel:
    items: List[LineItem] = field(default_factory=list)
    weight_grams: int = 0


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _cap_grams(max_parcel_weight_kg: float) -> Decimal:
    cap = Decimal(str(max_parcel_weight_kg)) * 1000
    if not cap.is_finite() or cap <= 0:
        raise ValueError(f"max parcel weight must be positive, got {max_parcel_weight_kg!r}")
    return cap


def item_weight_grams(item: LineItem) -> int:
    if not _is_int(item.grams) or item.grams < 0:
        raise RateValidationError(f"Invalid item weight: {item.grams!r} grams")
    if not _is_int(item.quantity) or item.quantity < 1:
        raise RateValidationError(f"Invalid item quantity: {item.quantity!r}")
    return item.grams * item.quantity


def total_weight_grams(items: Sequence[LineItem], max_total_grams: Optional[int] = None) -> int:
    if max_total_grams is None:
        max_total_grams = settings.MAX_ORDER_WEIGHT_GRAMS

    total = 0
    for item in items:
        total += item_weight_grams(item)
        if total > max_total_grams:
            raise RateValidationError(
                f"Order weight exceeds the maximum of {max_total_grams} grams"
            )
    return total


def ceiling_parcel_count(total_grams: int, max_parcel_weight_kg: float) -> int:
    """ceil(total / cap), with an empty or weightless order still one parcel."""
    if total_grams == 0:
        return 1
    return math.ceil(Decimal(total_grams) / _cap_grams(max_parcel_weight_kg))


def pack_parcels(items: Sequence[LineItem], max_parcel_weight_kg: float) -> List[Parcel]:
    """Greedy next-fit over items sorted heaviest first.

    Items are never split across parcels unless a single line is heavier than
    the cap on its own; such a line is spread over ceil(weight / cap) parcels
    carrying one unit each, full parcels first and the remainder last.
    """
    cap = _cap_grams(max_parcel_weight_kg)
    ordered = sorted(items, key=item_weight_grams, reverse=True)

    parcels: List[Parcel] = []
    current = Parcel()

    for item in ordered:
        weight = item_weight_grams(item)

        if current.weight_grams + weight <= cap:
            current.items.append(item)
            current.weight_grams += weight
            continue

        if current.items:
            parcels.append(current)
            current = Parcel()

        if weight > cap:
            needed = math.ceil(Decimal(weight) / cap)
            remaining = weight
            for _ in range(needed):
                share = min(remaining, int(cap))
                parcels.append(Parcel(items=[item.model_copy(update={"quantity": 1})], weight_grams=share))
                remaining -= share
            # integer truncation of a fractional cap leaves grams behind
            if remaining:
                parcels[-1].weight_grams += remaining
        else:
            current.items.append(item)
            current.weight_grams = weight

    if current.items:
        parcels.append(current)

    return parcels


def parcel_count(
    items: Sequence[LineItem],
    policy: ParcelPolicy = ParcelPolicy.CEILING,
    max_parcel_weight_kg: Optional[float] = None,
    max_total_grams: Optional[int] = None,
) -> int:
    if max_parcel_weight_kg is None:
        max_parcel_weight_kg = settings.MAX_PARCEL_WEIGHT_KG

    total = total_weight_grams(items, max_total_grams)
    policy = ParcelPolicy(policy)

    if policy is ParcelPolicy.BIN_PACKING:
        return max(len(pack_parcels(items, max_parcel_weight_kg)), 1)
    return ceiling_parcel_count(total, max_parcel_weight_kg)
