from fastapi import HTTPException, status
from typing import Any, List, Optional


class ProductNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )


class NoMatchingVariant(HTTPException):
    def __init__(self, detail: str = "No variant is available for the selected options"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class OutOfStock(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Selected variant is out of stock"
        )


class InsufficientStock(HTTPException):
    def __init__(self, available: int):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock. Only {available} items available"
        )


class DuplicateVariant(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="An active variant already exists for this flavor and weight"
        )


class CouponInvalid(HTTPException):
    def __init__(self, message: str = "Invalid or inactive coupon code"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message
        )


class CheckoutBelowMinimum(HTTPException):
    def __init__(self, minimum: float):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Minimum order amount is ₹{minimum:,.2f}"
        )


class CartNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cart not found"
        )


class CartItemNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cart item not found"
        )


class APIError(Exception):
    def __init__(self, status_code: int, message: str, errors: Optional[List[Any]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
