from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from app.db.session import get_db
from app.schemas.selection import QuantityClampRequest, QuantityClampResponse, SelectionRequest
from app.services.product_service import (
    ProductService,
    serialize_product_detail,
    serialize_product_summary,
    serialize_variant,
)
from app.services.variant_service import VariantSelector, clamp_quantity
from app.core.exceptions import NoMatchingVariant
from app.utils.response import paginated_response, success
from app.core.rate_limiter import limiter

router = APIRouter()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
@limiter.limit("100/minute")
def get_products(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Get products with search and pagination
    """
    products, total = ProductService.list_products(db, page=page, limit=limit, search=search)
    items = [serialize_product_summary(product).model_dump() for product in products]
    return paginated_response(items, total=total, page=page, limit=limit)


@router.get("/{slug}", response_model=dict)
@limiter.limit("100/minute")
def get_product_detail(request: Request, slug: str, db: Session = Depends(get_db)):
    """Get product detail with flavor/weight options and variants"""
    product = ProductService.get_product_by_slug(db, slug)
    return success(
        data={"product": serialize_product_detail(product).model_dump()},
        message="Product retrieved",
    )


@router.get("/{slug}/variant", response_model=dict)
def resolve_variant(
    slug: str,
    flavor_id: Optional[int] = None,
    weight_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Resolve the active variant for a (flavor, weight) pair"""
    product = ProductService.get_product_by_slug(db, slug)
    variant = VariantSelector.for_product(product).resolve_variant(flavor_id, weight_id)
    if variant is None:
        raise NoMatchingVariant()
    return success(data=serialize_variant(variant).model_dump(), message="Variant resolved")


@router.get("/{slug}/selection", response_model=dict)
def get_default_selection(slug: str, db: Session = Depends(get_db)):
    """Default selection shown when the product page loads"""
    product = ProductService.get_product_by_slug(db, slug)
    selection = ProductService.default_selection(product)
    return success(data=selection.model_dump(), message="Selection resolved")


@router.post("/{slug}/selection", response_model=dict)
def update_selection(slug: str, payload: SelectionRequest, db: Session = Depends(get_db)):
    """Apply a flavor or weight choice to the current selection"""
    product = ProductService.get_product_by_slug(db, slug)
    selection = ProductService.resolve_selection(product, payload)
    return success(data=selection.model_dump(), message="Selection resolved")


@router.post("/{slug}/quantity", response_model=dict)
def clamp_requested_quantity(slug: str, payload: QuantityClampRequest, db: Session = Depends(get_db)):
    """Bound a requested quantity by the variant's stock"""
    product = ProductService.get_product_by_slug(db, slug)
    variant = None
    if payload.variant_id is not None:
        variant = next((v for v in product.variants if v.id == payload.variant_id and v.is_active), None)
        if variant is None:
            raise NoMatchingVariant("Product variant not found")

    result = clamp_quantity(payload.requested, variant)
    response = QuantityClampResponse(
        quantity=result.quantity,
        warning=result.warning,
        limited_stock=result.limited_stock,
    )
    return success(data=response.model_dump())
