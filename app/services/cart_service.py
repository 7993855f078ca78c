from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
import structlog

from app.core.exceptions import (
    CartItemNotFound,
    CartNotFound,
    InsufficientStock,
    NoMatchingVariant,
    OutOfStock,
)
from app.models.cart import Cart, CartItem
from app.models.product import ProductVariant
from app.schemas.cart import CartItemResponse, CartResponse, CartTotals, CheckoutResponse
from app.services.coupon_service import CouponService
from app.services.pricing_service import compute_totals, ensure_checkout_allowed
from app.utils.email import send_checkout_summary_email

logger = structlog.get_logger()


class CartStore:
    """Single source of truth for one shopper's cart.

    All cart mutations go through the methods below; totals are always
    recomputed from the stored lines and never kept on the cart row.
    """

    def __init__(self, db: Session, cart: Cart):
        self.db = db
        self.cart = cart

    @classmethod
    def create(cls, db: Session) -> "CartStore":
        cart = Cart()
        db.add(cart)
        db.commit()
        db.refresh(cart)
        logger.info("cart_created", cart_id=cart.id)
        return cls(db, cart)

    @classmethod
    def load(cls, db: Session, token: str) -> "CartStore":
        cart = (
            db.query(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.variant))
            .filter(Cart.token == token)
            .first()
        )
        if not cart:
            raise CartNotFound()
        return cls(db, cart)

    @property
    def token(self) -> str:
        return self.cart.token

    @property
    def items(self) -> List[CartItem]:
        return list(self.cart.items)

    def _get_item(self, item_id: int) -> CartItem:
        item = next((i for i in self.cart.items if i.id == item_id), None)
        if item is None:
            raise CartItemNotFound()
        return item

    def _commit(self, event: str, **context) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"{event}_failed", cart_id=self.cart.id, **context)
            raise
        self.db.refresh(self.cart)
        logger.info(event, cart_id=self.cart.id, **context)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_item(self, variant_id: int, quantity: int = 1) -> CartItem:
        variant = (
            self.db.query(ProductVariant)
            .filter(ProductVariant.id == variant_id, ProductVariant.is_active == True)
            .first()
        )
        if not variant:
            raise NoMatchingVariant("Product variant not found")
        if variant.quantity <= 0:
            raise OutOfStock()

        existing_item = next((i for i in self.cart.items if i.variant_id == variant_id), None)
        new_quantity = quantity + (existing_item.quantity if existing_item else 0)
        if new_quantity > variant.quantity:
            raise InsufficientStock(variant.quantity)

        if existing_item:
            existing_item.quantity = new_quantity
            item = existing_item
        else:
            item = CartItem(
                variant_id=variant.id,
                quantity=quantity,
                unit_price=variant.effective_price,
            )
            self.cart.items.append(item)

        self._commit("cart_item_added", variant_id=variant_id, quantity=new_quantity)
        return item

    def update_quantity(self, item_id: int, quantity: int) -> CartItem:
        item = self._get_item(item_id)
        if quantity > item.variant.quantity:
            raise InsufficientStock(item.variant.quantity)

        item.quantity = quantity
        self._commit("cart_item_updated", item_id=item_id, quantity=quantity)
        return item

    def remove_item(self, item_id: int) -> None:
        item = self._get_item(item_id)
        self.cart.items.remove(item)
        self._commit("cart_item_removed", item_id=item_id)

    def clear(self) -> None:
        self.cart.items.clear()
        self.cart.coupon = None
        self._commit("cart_cleared")

    def apply_coupon(self, code: str) -> None:
        coupon = CouponService.validate_coupon(self.db, code, self.totals().subtotal)
        self.cart.coupon = coupon
        self._commit("coupon_applied", code=coupon.code)

    def remove_coupon(self) -> None:
        self.cart.coupon = None
        self._commit("coupon_removed")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def totals(self) -> CartTotals:
        return compute_totals(self.cart.items, self.cart.coupon)

    def snapshot(self) -> CartResponse:
        items_response = []
        for item in self.cart.items:
            variant = item.variant
            product = variant.product
            items_response.append(
                CartItemResponse(
                    id=item.id,
                    variant_id=variant.id,
                    product_id=product.id,
                    product_name=product.name,
                    product_slug=product.slug,
                    variant_details=variant.details,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=round(item.unit_price * item.quantity, 2),
                    stock_available=variant.quantity,
                )
            )

        return CartResponse(
            token=self.cart.token,
            items=items_response,
            coupon_code=self.cart.coupon.code if self.cart.coupon else None,
            totals=self.totals(),
            total_items=len(items_response),
        )

    def checkout(self, email: Optional[str] = None) -> CheckoutResponse:
        """Quote the cart for checkout; blocks carts under the minimum payable amount."""
        totals = self.totals()
        if self.cart.coupon is not None:
            # Coupon may have lapsed since it was applied.
            CouponService.validate_coupon(self.db, self.cart.coupon.code, totals.subtotal)
        ensure_checkout_allowed(totals)

        coupon_code = self.cart.coupon.code if self.cart.coupon else None
        email_queued = False
        if email:
            email_queued = send_checkout_summary_email(email, self.snapshot().items, totals, coupon_code)

        logger.info("checkout_quoted", cart_id=self.cart.id, total=totals.total, email_queued=email_queued)
        return CheckoutResponse(
            token=self.cart.token,
            totals=totals,
            coupon_code=coupon_code,
            email_queued=email_queued,
        )
