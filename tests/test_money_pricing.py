from decimal import Decimal

import pytest

from supplyhub.app_config import Settings
from supplyhub.models.money import line_total, money_str, sum_money, to_money
from supplyhub.services.pricing_service import haversine_km, quote


@pytest.mark.parametrize("raw", [10.5, "10.5", "10.50", Decimal("10.5"), " 10.50 "])
def test_price_input_forms_are_equal(raw):
    assert to_money(raw) == Decimal("10.50")
    assert money_str(raw) == "10.50"


@pytest.mark.parametrize("raw", ["abc", "", None, True, -1, "NaN", "Infinity"])
def test_bad_amounts_rejected(raw):
    with pytest.raises(ValueError):
        to_money(raw)


def test_line_and_order_totals():
    assert line_total(3, "10.50") == Decimal("31.50")
    assert sum_money(["31.50", "0.99", 2]) == Decimal("34.49")


def test_haversine_known_distance():
    # roughly 1 degree of latitude
    assert haversine_km((40.0, -74.0), (41.0, -74.0)) == pytest.approx(111.19, abs=0.1)


def test_quote_without_coordinates_is_base_fee():
    q = quote(Settings(), None, (40.0, -74.0))
    assert q.fee == "5.00"
    assert q.distance_km is None and q.minutes is None


def test_quote_with_coordinates_adds_distance_component():
    s = Settings(delivery_base_fee=Decimal("5.00"), delivery_fee_per_km=Decimal("1.00"), agent_speed_kmh=30)
    q = quote(s, (40.0, -74.0), (40.09, -74.0))
    assert q.distance_km == pytest.approx(10.01, abs=0.01)
    assert Decimal(q.fee) == Decimal("5.00") + Decimal(str(q.distance_km))
    assert q.minutes == 21
