import pytest

from app.canonical.v1.listing import PricingV1
from app.services.pricing import compute_price, round_half_up


@pytest.mark.parametrize("offer,margin", [(1, 20), (999, 20), (12345, 7.5), (500, 0), (80, 33)])
def test_offer_price_is_marked_up_by_margin(offer, margin):
    q = compute_price(PricingV1(offer_price=offer, mrp=99999), margin)
    assert q.source == "OFFER"
    assert q.base_price == offer
    assert q.public_price == round_half_up(offer * (1 + margin / 100))


def test_falls_back_to_mrp():
    q = compute_price(PricingV1(offer_price=0, mrp=500), 20)
    assert (q.base_price, q.public_price, q.source) == (500, 600, "MRP")


def test_rate_times_weight():
    q = compute_price(PricingV1(price_mode="RATE_TIMES_WEIGHT", rate_per_unit=100, weight=5.5), 10)
    assert (q.base_price, q.public_price, q.source) == (550, 605, "RATE_TIMES_WEIGHT")


def test_rate_times_weight_ignores_flat_inputs():
    q = compute_price(PricingV1(price_mode="RATE_TIMES_WEIGHT", rate_per_unit=100, weight=0, offer_price=900), 10)
    assert (q.base_price, q.public_price, q.source) == (0, 0, "RATE_TIMES_WEIGHT")


def test_no_inputs_means_price_on_request():
    q = compute_price(PricingV1(), 25)
    assert (q.base_price, q.public_price, q.source) == (0, 0, "NONE")


def test_rounding_is_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert compute_price(PricingV1(offer_price=125), 10).public_price == 138
    # 16.5 rounds up, not to even
    assert compute_price(PricingV1(offer_price=15), 10).public_price == 17
    assert compute_price(PricingV1(offer_price=45), 10).public_price == 50


def test_fractional_offer_rounds_base_first():
    q = compute_price(PricingV1(offer_price=99.5), 0)
    assert q.base_price == 100
    assert q.public_price == 100


def test_recomputed_each_time():
    pricing = PricingV1(offer_price=1000)
    assert compute_price(pricing, 20).public_price == 1200
    assert compute_price(pricing, 30).public_price == 1300
