from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class CartItemCreate(BaseModel):
    variant_id: int = Field(..., gt=0)
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class ApplyCouponRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)


class CheckoutRequest(BaseModel):
    email: Optional[EmailStr] = None


class CartTotals(BaseModel):
    subtotal: float
    discount: float
    shipping: float
    total: float


class CartItemResponse(BaseModel):
    id: int
    variant_id: int
    product_id: int
    product_name: str
    product_slug: str
    variant_details: str
    quantity: int
    unit_price: float
    total_price: float
    stock_available: int


class CartResponse(BaseModel):
    token: str
    items: List[CartItemResponse]
    coupon_code: Optional[str] = None
    totals: CartTotals
    total_items: int


class CheckoutResponse(BaseModel):
    token: str
    totals: CartTotals
    coupon_code: Optional[str] = None
    email_queued: bool = False
