# tests/unit/test_shipping_preferences.py
from __future__ import annotations

import pytest

from app.services.shipping_fee.matchers import normalize_region_name
from app.services.shipping_fee.preferences import (
    SOURCE_NONE,
    SOURCE_VENDOR_DEFAULT,
    SOURCE_VENDOR_OUT_OF_REGION,
    preference_rate,
)
from app.services.shipping_fee.types import VendorShippingPreferences


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Greater Accra Region", "accra"),
        ("Greater Accra", "accra"),
        ("  ASHANTI region ", "ashanti"),
        ("Volta", "volta"),
        (None, ""),
        ("", ""),
    ],
)
def test_normalize_region_name(raw, expected):
    assert normalize_region_name(raw) == expected


def test_no_preferences_gives_zero():
    assert preference_rate(None, "Ashanti", "Greater Accra") == (0.0, SOURCE_NONE)


def test_nothing_configured_gives_zero():
    prefs = VendorShippingPreferences()
    assert preference_rate(prefs, "Ashanti", "Greater Accra") == (0.0, SOURCE_NONE)


def test_out_of_region_rate_when_regions_differ():
    prefs = VendorShippingPreferences(default_base_rate=30, default_out_of_region_rate=60)
    assert preference_rate(prefs, "Ashanti", "Greater Accra") == (60.0, SOURCE_VENDOR_OUT_OF_REGION)


def test_same_region_after_normalisation_uses_default():
    prefs = VendorShippingPreferences(default_base_rate=30, default_out_of_region_rate=60)
    assert preference_rate(prefs, "Greater Accra", "greater accra region") == (30.0, SOURCE_VENDOR_DEFAULT)


def test_regional_rates_disabled_uses_default():
    prefs = VendorShippingPreferences(
        default_base_rate=30, default_out_of_region_rate=60, enable_regional_rates=False
    )
    assert preference_rate(prefs, "Ashanti", "Greater Accra") == (30.0, SOURCE_VENDOR_DEFAULT)


def test_unknown_vendor_region_uses_default():
    prefs = VendorShippingPreferences(default_base_rate=70, default_out_of_region_rate=90)
    assert preference_rate(prefs, None, "Greater Accra") == (70.0, SOURCE_VENDOR_DEFAULT)


def test_preferences_from_json():
    assert VendorShippingPreferences.from_json(None) is None
    assert VendorShippingPreferences.from_json("nope") is None

    p = VendorShippingPreferences.from_json({"default_base_rate": "45.5"})
    assert p is not None
    assert p.default_base_rate == 45.5
    assert p.default_out_of_region_rate is None
    # absent flag means enabled
    assert p.enable_regional_rates is True

    p = VendorShippingPreferences.from_json({"enable_regional_rates": False})
    assert p.enable_regional_rates is False
