from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_cart_store
from app.schemas.cart import ApplyCouponRequest, CartItemCreate, CartItemUpdate, CheckoutRequest
from app.services.cart_service import CartStore
from app.utils.response import success

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_cart(db: Session = Depends(get_db)):
    """Start a new cart"""
    store = CartStore.create(db)
    return success(data=store.snapshot().model_dump(), message="Cart created")


@router.get("/{token}", response_model=dict)
def get_cart(store: CartStore = Depends(get_cart_store)):
    """Get cart with freshly computed totals"""
    return success(data=store.snapshot().model_dump())


@router.post("/{token}/items", status_code=status.HTTP_201_CREATED)
def add_to_cart(cart_item: CartItemCreate, store: CartStore = Depends(get_cart_store)):
    """Add item to cart"""
    item = store.add_item(cart_item.variant_id, cart_item.quantity)
    return success(
        data={"cart_item_id": item.id, "cart": store.snapshot().model_dump()},
        message="Item added to cart",
    )


@router.put("/{token}/items/{item_id}")
def update_cart_item(item_id: int, update_data: CartItemUpdate, store: CartStore = Depends(get_cart_store)):
    """Update cart item quantity"""
    store.update_quantity(item_id, update_data.quantity)
    return success(data=store.snapshot().model_dump(), message="Cart item updated")


@router.delete("/{token}/items/{item_id}")
def remove_from_cart(item_id: int, store: CartStore = Depends(get_cart_store)):
    """Remove item from cart"""
    store.remove_item(item_id)
    return success(data=store.snapshot().model_dump(), message="Item removed from cart")


@router.delete("/{token}")
def clear_cart(store: CartStore = Depends(get_cart_store)):
    """Clear entire cart"""
    store.clear()
    return success(data=store.snapshot().model_dump(), message="Cart cleared")


@router.post("/{token}/coupon")
def apply_coupon(payload: ApplyCouponRequest, store: CartStore = Depends(get_cart_store)):
    """Apply a coupon code to the cart"""
    store.apply_coupon(payload.code)
    return success(data=store.snapshot().model_dump(), message="Coupon applied successfully")


@router.delete("/{token}/coupon")
def remove_coupon(store: CartStore = Depends(get_cart_store)):
    """Remove the applied coupon"""
    store.remove_coupon()
    return success(data=store.snapshot().model_dump(), message="Coupon removed")


@router.post("/{token}/checkout")
def checkout(payload: CheckoutRequest, store: CartStore = Depends(get_cart_store)):
    """Validate the cart for checkout and return the payable quote"""
    quote = store.checkout(email=payload.email)
    return success(data=quote.model_dump(), message="Cart ready for checkout")
