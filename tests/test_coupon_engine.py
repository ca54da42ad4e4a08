from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models.coupon import Coupon
from app.services.coupons import (
    CouponRejected,
    check_coupon,
    compute_discount,
    normalize_code,
    quote_coupon,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def coupon(**overrides):
    fields = dict(
        code="SAVE10",
        discount_type="percentage",
        discount_value=Decimal("10"),
        min_purchase_amount=None,
        max_discount_amount=None,
        max_uses=None,
        current_uses=0,
        max_uses_per_user=1,
        valid_from=None,
        valid_until=None,
        applies_to="all",
        applicable_items=None,
        is_active=True,
    )
    fields.update(overrides)
    return Coupon(**fields)


def rejection(c, **kwargs):
    params = dict(item_type="webinar", item_id="w1", amount=Decimal("500"), now=NOW)
    params.update(kwargs)
    with pytest.raises(CouponRejected) as exc:
        check_coupon(c, **params)
    return exc.value


def test_normalize_code_trims_and_uppercases():
    assert normalize_code("  save10 ") == "SAVE10"
    assert normalize_code("") == ""


def test_percentage_discount_is_capped():
    c = coupon(discount_value=Decimal("50"), max_discount_amount=Decimal("100"))
    assert compute_discount(c, Decimal("1000")) == Decimal("100.00")
    assert compute_discount(c, Decimal("150")) == Decimal("75.00")


def test_fixed_discount_never_exceeds_amount():
    c = coupon(discount_type="fixed", discount_value=Decimal("600"))
    assert compute_discount(c, Decimal("499")) == Decimal("499.00")


def test_discount_rounds_half_up():
    c = coupon(discount_value=Decimal("12.5"))
    # 12.5% of 99.9 = 12.4875
    assert compute_discount(c, Decimal("99.9")) == Decimal("12.49")


def test_zero_amount_has_no_discount():
    assert compute_discount(coupon(), Decimal("0")) == Decimal("0.00")


def test_quote_without_amount_returns_no_final_amount():
    q = quote_coupon(coupon(), None)
    assert q.discount_amount == Decimal("0.00")
    assert q.final_amount is None


def test_quote_final_amount_is_amount_minus_discount():
    q = quote_coupon(coupon(), Decimal("499"))
    assert q.discount_amount == Decimal("49.90")
    assert q.final_amount == Decimal("449.10")


def test_not_yet_valid():
    err = rejection(coupon(valid_from=NOW + timedelta(days=1)))
    assert err.reason == "not_yet_valid"


def test_expired():
    err = rejection(coupon(valid_until=NOW - timedelta(seconds=1)))
    assert err.reason == "expired"
    assert str(err) == "This coupon has expired"


def test_naive_timestamps_are_treated_as_utc():
    c = coupon(valid_until=datetime(2026, 3, 1, 11, 0))
    assert rejection(c).reason == "expired"


def test_usage_limit_reached():
    err = rejection(coupon(max_uses=5, current_uses=5))
    assert err.reason == "usage_limit"


def test_wrong_item_type():
    err = rejection(coupon(applies_to="service"))
    assert err.reason == "wrong_item_type"
    assert str(err) == "This coupon is only valid for services"


def test_item_not_in_allow_list():
    err = rejection(coupon(applicable_items=["w2", "w3"]))
    assert err.reason == "item_not_eligible"


def test_below_minimum_purchase():
    err = rejection(coupon(min_purchase_amount=Decimal("1000")))
    assert err.reason == "below_minimum"
    assert "1,000.00" in str(err)


def test_minimum_is_skipped_without_amount():
    check_coupon(
        coupon(min_purchase_amount=Decimal("1000")),
        item_type="webinar",
        item_id="w1",
        amount=None,
        now=NOW,
    )


def test_checks_run_in_order():
    # expired and over the limit: expiry is reported first
    c = coupon(valid_until=NOW - timedelta(days=1), max_uses=1, current_uses=1)
    assert rejection(c).reason == "expired"


def test_eligible_coupon_passes():
    check_coupon(
        coupon(applies_to="webinar", applicable_items=["w1"], min_purchase_amount=Decimal("100")),
        item_type="webinar",
        item_id="w1",
        amount=Decimal("499"),
        now=NOW,
    )


def test_usage_limit_boundary():
    check_coupon(coupon(max_uses=5, current_uses=4), item_type=None, item_id=None, amount=None, now=NOW)
    assert rejection(coupon(max_uses=5, current_uses=6)).reason == "usage_limit"


def test_fixed_discount_larger_than_amount_yields_zero_total():
    q = quote_coupon(coupon(discount_type="fixed", discount_value=Decimal("1000")), Decimal("300"))
    assert q.discount_amount == Decimal("300.00")
    assert q.final_amount == Decimal("0.00")
