# app/services/shipping_fee/surcharges.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from app.models.shipping_zone_rate import RATE_KIND_PRICE, RATE_KIND_WEIGHT

from .matchers import RateRule


def apply_surcharges(
    base_fee: float,
    rules: Sequence[RateRule],
    total_weight_kg: float,
    total_value: float,
) -> Tuple[float, List[Dict[str, Any]]]:
    """
    Add every matching rule to base_fee, in rule order.

    weight: hit when total_weight_kg > threshold (strict)
    price : hit when total_value > threshold (strict)

    Totals are float sums, so a total equal to the threshold within 1e-9
    (0.1 + 0.2 vs 0.3) does not hit.

    The returned fee is NOT clamped; a negative rule can push it below zero
    and the caller clamps after all additions.
    """
    fee = float(base_fee)
    hits: List[Dict[str, Any]] = []

    for kind, threshold, additional_fee in rules:
        if kind == RATE_KIND_WEIGHT:
            measured = float(total_weight_kg)
        elif kind == RATE_KIND_PRICE:
            measured = float(total_value)
        else:
            continue

        if measured > float(threshold) + 1e-9:
            fee += float(additional_fee)
            hits.append(
                {
                    "kind": kind,
                    "threshold": float(threshold),
                    "additional_fee": float(additional_fee),
                    "measured": measured,
                }
            )

    return fee, hits
