# app/services/shipping_diagnostic_errors.py
from __future__ import annotations


class OrderNotFound(Exception):
    pass


class ShippingFixConflict(Exception):
    """The order changed between diagnose and write (version mismatch)."""

    def __init__(self, order_id: int, expected_version: int) -> None:
        super().__init__(
            f"order {order_id} was modified concurrently (expected version {expected_version})"
        )
        self.order_id = order_id
        self.expected_version = expected_version
