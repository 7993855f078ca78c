from typing import Any, Iterable, Optional

from app.core.config import settings
from app.core.exceptions import CheckoutBelowMinimum
from app.models.coupon import DiscountType
from app.schemas.cart import CartTotals


def _money(amount: float) -> float:
    return round(amount, 2)


def calculate_discount(coupon: Optional[Any], subtotal: float) -> float:
    """Discount a coupon grants on ``subtotal``, never more than the subtotal."""
    if coupon is None or subtotal <= 0:
        return 0.0

    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount_amount = (subtotal * coupon.discount_value) / 100
        max_discount = getattr(coupon, "max_discount", None)
        if max_discount and discount_amount > max_discount:
            discount_amount = max_discount
    else:  # FIXED
        discount_amount = coupon.discount_value

    return min(discount_amount, subtotal)


def calculate_shipping(
    discounted_subtotal: float,
    has_items: bool = True,
    free_shipping_threshold: Optional[float] = None,
    shipping_fee: Optional[float] = None,
) -> float:
    if not has_items:
        return 0.0
    threshold = settings.FREE_SHIPPING_THRESHOLD if free_shipping_threshold is None else free_shipping_threshold
    fee = settings.SHIPPING_FEE if shipping_fee is None else shipping_fee
    return 0.0 if discounted_subtotal >= threshold else fee


def compute_totals(
    line_items: Iterable[Any],
    coupon: Optional[Any] = None,
    *,
    free_shipping_threshold: Optional[float] = None,
    shipping_fee: Optional[float] = None,
) -> CartTotals:
    """Derive cart totals from scratch.

    Line items only need ``unit_price`` and ``quantity``; the coupon needs
    ``discount_type`` and ``discount_value`` (``max_discount`` is optional).
    Nothing is cached between calls.
    """
    items = list(line_items)
    subtotal = _money(sum(item.unit_price * item.quantity for item in items))
    discount = _money(calculate_discount(coupon, subtotal))
    shipping = calculate_shipping(
        subtotal - discount,
        has_items=bool(items),
        free_shipping_threshold=free_shipping_threshold,
        shipping_fee=shipping_fee,
    )
    total = max(0.0, _money(subtotal - discount + shipping))

    return CartTotals(subtotal=subtotal, discount=discount, shipping=shipping, total=total)


def ensure_checkout_allowed(totals: CartTotals, minimum: Optional[float] = None) -> None:
    minimum_amount = settings.MIN_CHECKOUT_AMOUNT if minimum is None else minimum
    if totals.total < minimum_amount:
        raise CheckoutBelowMinimum(minimum_amount)
