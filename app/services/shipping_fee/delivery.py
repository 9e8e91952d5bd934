# app/services/shipping_fee/delivery.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Optional

from app.core.config import get_settings


def calculate_estimated_delivery(today: Optional[date] = None) -> Dict[str, str]:
    """Delivery window shown at checkout: today + DELIVERY_MIN_DAYS .. today + DELIVERY_MAX_DAYS."""
    s = get_settings()
    base = today or date.today()
    lo = base + timedelta(days=int(s.DELIVERY_MIN_DAYS))
    hi = base + timedelta(days=int(s.DELIVERY_MAX_DAYS))
    return {
        "min_delivery_date": lo.isoformat(),
        "max_delivery_date": hi.isoformat(),
        "display_text": f"{lo.strftime('%a, %b %d')} - {hi.strftime('%a, %b %d')}",
    }
