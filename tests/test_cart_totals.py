from types import SimpleNamespace

import pytest

from app.core.exceptions import CheckoutBelowMinimum
from app.models.coupon import DiscountType
from app.services.pricing_service import compute_totals, ensure_checkout_allowed


def _line(unit_price: float, quantity: int):
    return SimpleNamespace(unit_price=unit_price, quantity=quantity)


def _coupon(discount_type: DiscountType, value: float, max_discount=None):
    return SimpleNamespace(discount_type=discount_type, discount_value=value, max_discount=max_discount)


def test_two_lines_over_threshold_ship_free():
    totals = compute_totals([_line(500, 2), _line(300, 1)], free_shipping_threshold=999, shipping_fee=99)

    assert totals.subtotal == 1300
    assert totals.discount == 0
    assert totals.shipping == 0
    assert totals.total == 1300


def test_percentage_coupon_discount():
    totals = compute_totals(
        [_line(1000, 1)],
        _coupon(DiscountType.PERCENTAGE, 10),
        free_shipping_threshold=999,
        shipping_fee=99,
    )

    assert totals.discount == 100
    # 900 falls under the threshold once the discount is applied
    assert totals.shipping == 99
    assert totals.total == 999


def test_percentage_coupon_respects_max_discount():
    totals = compute_totals([_line(5000, 1)], _coupon(DiscountType.PERCENTAGE, 50, max_discount=300))

    assert totals.discount == 300


def test_fixed_coupon_is_clamped_to_subtotal():
    totals = compute_totals(
        [_line(150, 1)],
        _coupon(DiscountType.FIXED, 200),
        free_shipping_threshold=999,
        shipping_fee=99,
    )

    assert totals.discount == 150
    assert totals.shipping == 99
    assert totals.total == 99


def test_empty_cart_has_no_shipping():
    totals = compute_totals([])

    assert totals.subtotal == 0
    assert totals.shipping == 0
    assert totals.total == 0


def test_compute_totals_is_repeatable():
    lines = [_line(499.99, 3), _line(19.5, 2)]
    coupon = _coupon(DiscountType.PERCENTAGE, 15)

    first = compute_totals(lines, coupon)
    second = compute_totals(lines, coupon)

    assert first == second
    assert first.total == round(first.subtotal - first.discount + first.shipping, 2)


def test_checkout_blocked_below_minimum():
    free_cart = compute_totals([_line(150, 1)], _coupon(DiscountType.FIXED, 200), shipping_fee=0)

    with pytest.raises(CheckoutBelowMinimum) as exc_info:
        ensure_checkout_allowed(free_cart, minimum=1)
    assert exc_info.value.status_code == 400

    ensure_checkout_allowed(compute_totals([_line(10, 1)]), minimum=1)
