from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_admin
from app.schemas.product import ProductCreate, VariantUpdate
from app.services.product_service import ProductService, serialize_product_detail, serialize_variant
from app.utils.response import success

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/products", response_model=dict, status_code=status.HTTP_201_CREATED)
def create_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    """Create a product with its options and variants"""
    product = ProductService.create_product(db, product_data)
    return success(
        data={"product": serialize_product_detail(product).model_dump()},
        message="Product created successfully",
    )


@router.patch("/variants/{variant_id}", response_model=dict)
def update_variant(variant_id: int, variant_data: VariantUpdate, db: Session = Depends(get_db)):
    """Update variant price, stock or availability"""
    variant = ProductService.update_variant(db, variant_id, variant_data)
    return success(data=serialize_variant(variant).model_dump(), message="Variant updated successfully")
