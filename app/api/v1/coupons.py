from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_admin
from app.services.coupon_service import CouponService
from app.schemas.coupon import CouponCreate, CouponUpdate
from app.utils.response import success

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_coupon(coupon_data: CouponCreate, db: Session = Depends(get_db)):
    """Create a new coupon (admin only)."""
    coupon = CouponService.create_coupon(db, coupon_data)
    return success(data=coupon.model_dump(), message="Coupon created successfully")


@router.get("/", response_model=dict)
def list_coupons(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """List all coupons (admin only)."""
    coupons = CouponService.list_coupons(db, skip, limit)
    return success(data=[c.model_dump() for c in coupons], message="Coupons retrieved successfully")


@router.put("/{coupon_id}", response_model=dict)
def update_coupon(coupon_id: int, coupon_data: CouponUpdate, db: Session = Depends(get_db)):
    """Update a coupon (admin only)."""
    coupon = CouponService.update_coupon(db, coupon_id, coupon_data)
    return success(data=coupon.model_dump(), message="Coupon updated successfully")


@router.delete("/{coupon_id}", response_model=dict)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    """Delete a coupon (admin only)."""
    CouponService.delete_coupon(db, coupon_id)
    return success(message="Coupon deleted successfully")
