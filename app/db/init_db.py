from sqlalchemy.orm import Session
import logging
from app.db.base import Base
from app.models.product import Product
from app.models.coupon import Coupon, DiscountType
from app.schemas.product import (
    FlavorOptionCreate,
    ProductCreate,
    VariantCreate,
    WeightOptionCreate,
)
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)

DEMO_PRODUCT_SLUG = "whey-protein"


def _demo_product() -> ProductCreate:
    return ProductCreate(
        name="Whey Protein",
        slug=DEMO_PRODUCT_SLUG,
        description="Whey protein isolate in two flavors and two pack sizes",
        flavors=[FlavorOptionCreate(name="Chocolate"), FlavorOptionCreate(name="Vanilla")],
        weights=[WeightOptionCreate(value=1, unit="kg"), WeightOptionCreate(value=2, unit="kg")],
        variants=[
            VariantCreate(sku="WHEY-CHOC-1KG", flavor_index=0, weight_index=0, price=1999, sale_price=1799, quantity=25),
            VariantCreate(sku="WHEY-CHOC-2KG", flavor_index=0, weight_index=1, price=3599, quantity=10),
            VariantCreate(sku="WHEY-VAN-1KG", flavor_index=1, weight_index=0, price=1999, quantity=3),
            VariantCreate(sku="WHEY-VAN-2KG", flavor_index=1, weight_index=1, price=3599, quantity=0),
        ],
    )


def init_db(db: Session) -> None:
    """Initialize database with default data"""
    Base.metadata.create_all(bind=db.get_bind())

    if not db.query(Product.id).filter(Product.slug == DEMO_PRODUCT_SLUG).first():
        ProductService.create_product(db, _demo_product())
        logger.info("product_created slug=%s", DEMO_PRODUCT_SLUG)

    if not db.query(Coupon.id).filter(Coupon.code == "WELCOME10").first():
        db.add(
            Coupon(
                code="WELCOME10",
                description="10% off your first order",
                discount_type=DiscountType.PERCENTAGE,
                discount_value=10,
                min_order_value=500,
                max_discount=300,
            )
        )
        logger.info("coupon_created code=WELCOME10")

    db.commit()
    logger.info("database_initialized")


if __name__ == "__main__":
    from app.db.session import SessionLocal
    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()
