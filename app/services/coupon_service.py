from sqlalchemy.orm import Session
from sqlalchemy import and_
from fastapi import HTTPException, status
from datetime import datetime
import structlog

from app.core.exceptions import CouponInvalid
from app.models.cart import Cart
from app.models.coupon import Coupon, DiscountType
from app.schemas.coupon import CouponCreate, CouponUpdate, CouponResponse

logger = structlog.get_logger()


def normalize_code(code: str) -> str:
    return code.strip().upper()


class CouponService:

    @staticmethod
    def _get_or_404(db: Session, coupon_id: int) -> Coupon:
        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Coupon not found"
            )
        return coupon

    @staticmethod
    def create_coupon(db: Session, coupon_data: CouponCreate) -> CouponResponse:
        """Create a new coupon (admin only)."""
        code = normalize_code(coupon_data.code)
        existing = db.query(Coupon).filter(Coupon.code == code).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Coupon code already exists"
            )

        if coupon_data.discount_type == DiscountType.PERCENTAGE and coupon_data.discount_value > 100:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Percentage discount cannot exceed 100%"
            )

        coupon = Coupon(
            code=code,
            description=coupon_data.description,
            discount_type=coupon_data.discount_type,
            discount_value=coupon_data.discount_value,
            min_order_value=coupon_data.min_order_value,
            max_discount=coupon_data.max_discount,
            expiry_date=coupon_data.expiry_date
        )

        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        logger.info("coupon_created", coupon_id=coupon.id, code=coupon.code)

        return CouponResponse.model_validate(coupon)

    @staticmethod
    def update_coupon(db: Session, coupon_id: int, coupon_data: CouponUpdate) -> CouponResponse:
        """Update a coupon (admin only)."""
        coupon = CouponService._get_or_404(db, coupon_id)

        update_data = coupon_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(coupon, key, value)

        if coupon.discount_type == DiscountType.PERCENTAGE and coupon.discount_value > 100:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Percentage discount cannot exceed 100%"
            )

        db.commit()
        db.refresh(coupon)

        return CouponResponse.model_validate(coupon)

    @staticmethod
    def delete_coupon(db: Session, coupon_id: int):
        """Delete a coupon (admin only)."""
        coupon = CouponService._get_or_404(db, coupon_id)
        detached = (
            db.query(Cart)
            .filter(Cart.coupon_id == coupon.id)
            .update({Cart.coupon_id: None}, synchronize_session="fetch")
        )
        db.delete(coupon)
        db.commit()
        logger.info("coupon_deleted", coupon_id=coupon_id, carts_detached=detached)

    @staticmethod
    def list_coupons(db: Session, skip: int = 0, limit: int = 100) -> list[CouponResponse]:
        """List all coupons."""
        coupons = db.query(Coupon).order_by(Coupon.id).offset(skip).limit(limit).all()
        return [CouponResponse.model_validate(coupon) for coupon in coupons]

    @staticmethod
    def validate_coupon(db: Session, coupon_code: str, subtotal: float) -> Coupon:
        """Return the coupon for ``coupon_code`` or raise CouponInvalid."""
        code = normalize_code(coupon_code)
        coupon = db.query(Coupon).filter(
            and_(Coupon.code == code, Coupon.is_active == True)
        ).first()

        if not coupon:
            logger.info("coupon_rejected", code=code, reason="unknown_or_inactive")
            raise CouponInvalid("Invalid or inactive coupon code")

        if coupon.expiry_date and coupon.expiry_date < datetime.utcnow():
            logger.info("coupon_rejected", code=code, reason="expired")
            raise CouponInvalid("Coupon has expired")

        if subtotal < coupon.min_order_value:
            logger.info("coupon_rejected", code=code, reason="below_min_order", subtotal=subtotal)
            raise CouponInvalid(f"Minimum order value of ₹{coupon.min_order_value:,.2f} required")

        return coupon
