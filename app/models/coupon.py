from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Enum, Text
from datetime import datetime
import enum
from app.db.base_class import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_value = Column(Float, nullable=False)  # Percentage (0-100) or fixed amount

    min_order_value = Column(Float, default=0.0, nullable=False)
    max_discount = Column(Float, nullable=True)  # Max discount for percentage type

    is_active = Column(Boolean, default=True, nullable=False)
    expiry_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
