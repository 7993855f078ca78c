from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_
from fastapi import HTTPException, status
from typing import Any, List, Optional, Tuple
from slugify import slugify
import structlog

from app.core.exceptions import APIError, DuplicateVariant, NoMatchingVariant, ProductNotFound
from app.models.product import (
    FlavorOption,
    Product,
    ProductImage,
    ProductVariant,
    VariantImage,
    WeightOption,
)
from app.schemas.product import (
    FlavorOptionResponse,
    ImageResponse,
    ProductCreate,
    ProductDetailResponse,
    ProductListResponse,
    ProductVariantResponse,
    VariantUpdate,
    WeightOptionResponse,
)
from app.schemas.selection import SelectionRequest, SelectionResponse
from app.services.variant_service import VariantSelector

logger = structlog.get_logger()


def sorted_images(images: List[Any]) -> List[Any]:
    """Primary image first, then display order."""
    return sorted(images or [], key=lambda img: (not img.is_primary, img.display_order or 0))


def display_prices(product: Product) -> Tuple[Optional[float], Optional[float], bool]:
    """Return (base_price, regular_price, has_sale), falling back to the first variant."""
    if product.base_price is None and product.variants:
        first_variant = product.variants[0]
        base_price = first_variant.effective_price
        regular_price = first_variant.price
        return base_price, regular_price, base_price < regular_price
    return product.base_price, product.regular_price, product.has_sale


def current_images(product: Product, variant: Optional[ProductVariant] = None) -> List[Any]:
    """Images to show for the selected variant, falling back to the product gallery."""
    if variant is not None and variant.images:
        return sorted_images(variant.images)
    if product.images:
        return list(product.images)
    if variant is None:
        first_with_images = next((v for v in product.variants if v.images), None)
        if first_with_images is not None:
            return sorted_images(first_with_images.images)
    return []


def serialize_variant(variant: ProductVariant) -> ProductVariantResponse:
    return ProductVariantResponse(
        id=variant.id,
        sku=variant.sku,
        flavor_id=variant.flavor_id,
        weight_id=variant.weight_id,
        price=variant.price,
        sale_price=variant.sale_price,
        quantity=variant.quantity,
        is_active=variant.is_active,
        images=[ImageResponse.model_validate(img) for img in sorted_images(variant.images)],
    )


def serialize_product_summary(product: Product) -> ProductListResponse:
    base_price, regular_price, has_sale = display_prices(product)
    primary_image = next((img.image_url for img in product.images if img.is_primary), None)
    if not primary_image and product.images:
        primary_image = product.images[0].image_url

    return ProductListResponse(
        id=product.id,
        name=product.name,
        slug=product.slug,
        base_price=base_price,
        regular_price=regular_price,
        has_sale=has_sale,
        primary_image=primary_image,
        in_stock=any(v.is_active and v.quantity > 0 for v in product.variants),
        avg_rating=product.avg_rating or 0.0,
        review_count=product.review_count or 0,
    )


def serialize_product_detail(product: Product) -> ProductDetailResponse:
    summary = serialize_product_summary(product)
    return ProductDetailResponse(
        **summary.model_dump(),
        description=product.description,
        images=[ImageResponse.model_validate(img) for img in product.images],
        flavor_options=[FlavorOptionResponse.model_validate(f) for f in product.flavor_options],
        weight_options=[WeightOptionResponse.model_validate(w) for w in product.weight_options],
        variants=[serialize_variant(v) for v in product.variants],
        created_at=product.created_at,
    )


def serialize_selection(
    product: Product,
    selector: VariantSelector,
    warning: Optional[str] = None,
) -> SelectionResponse:
    variant = selector.selected_variant
    return SelectionResponse(
        state=selector.state,
        flavor=FlavorOptionResponse.model_validate(selector.selected_flavor) if selector.selected_flavor else None,
        weight=WeightOptionResponse.model_validate(selector.selected_weight) if selector.selected_weight else None,
        variant=serialize_variant(variant) if variant is not None else None,
        available_flavor_ids=selector.compatible_flavor_ids(),
        available_weight_ids=selector.compatible_weight_ids(),
        quantity=selector.quantity,
        warning=warning,
        purchasable=selector.is_purchasable,
        out_of_stock=selector.is_out_of_stock,
        images=[ImageResponse.model_validate(img) for img in current_images(product, variant)],
    )


class ProductService:

    @staticmethod
    def _query(db: Session):
        return db.query(Product).options(
            selectinload(Product.images),
            selectinload(Product.flavor_options),
            selectinload(Product.weight_options),
            selectinload(Product.variants).selectinload(ProductVariant.images),
        )

    @staticmethod
    def get_product_by_slug(db: Session, slug: str) -> Product:
        product = (
            ProductService._query(db)
            .filter(Product.slug == slug, Product.is_active == True)
            .first()
        )
        if not product:
            raise ProductNotFound()
        return product

    @staticmethod
    def list_products(
        db: Session,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> Tuple[List[Product], int]:
        query = ProductService._query(db).filter(Product.is_active == True)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Product.name.ilike(search_term),
                    Product.description.ilike(search_term)
                )
            )

        total = query.count()
        products = query.order_by(Product.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return products, total

    @staticmethod
    def get_variant(db: Session, variant_id: int) -> ProductVariant:
        variant = db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()
        if not variant:
            raise NoMatchingVariant("Product variant not found")
        return variant

    @staticmethod
    def resolve_selection(product: Product, request: SelectionRequest) -> SelectionResponse:
        """Replay the shopper's current selection, apply their action, clamp quantity."""
        selector = VariantSelector.for_product(product)
        selector.restore(request.flavor_id, request.weight_id)
        variant_before = selector.selected_variant

        if request.select is not None:
            if request.select.dimension == "flavor":
                selector.select_flavor(selector.flavor_by_id(request.select.option_id))
            else:
                selector.select_weight(selector.weight_by_id(request.select.option_id))

        warning = None
        if selector.selected_variant is variant_before:
            warning = selector.set_quantity(request.quantity).warning

        return serialize_selection(product, selector, warning)

    @staticmethod
    def default_selection(product: Product) -> SelectionResponse:
        selector = VariantSelector.for_product(product)
        selector.auto_select()
        return serialize_selection(product, selector)

    @staticmethod
    def _ensure_unique_active_combination(db: Session, variant: ProductVariant) -> None:
        clash = (
            db.query(ProductVariant)
            .filter(
                ProductVariant.product_id == variant.product_id,
                ProductVariant.flavor_id == variant.flavor_id,
                ProductVariant.weight_id == variant.weight_id,
                ProductVariant.is_active == True,
                ProductVariant.id != variant.id,
            )
            .first()
        )
        if clash:
            raise DuplicateVariant()

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        """Create a product with its flavor/weight options and variants (admin only)."""
        slug = slugify(product_data.slug or product_data.name)
        if db.query(Product.id).filter(Product.slug == slug).first():
            raise APIError(
                status.HTTP_400_BAD_REQUEST,
                "Product slug already exists",
                errors=[{"field": "slug", "value": slug}],
            )

        skus = [v.sku for v in product_data.variants]
        if len(set(skus)) != len(skus) or db.query(ProductVariant.id).filter(ProductVariant.sku.in_(skus)).first():
            raise APIError(
                status.HTTP_400_BAD_REQUEST,
                "Variant SKU already exists",
                errors=[{"field": "variants.sku", "value": skus}],
            )

        try:
            product = Product(
                name=product_data.name,
                slug=slug,
                description=product_data.description,
                base_price=product_data.base_price,
                regular_price=product_data.regular_price,
                is_active=True,
            )
            db.add(product)
            db.flush()

            for order, url in enumerate(product_data.image_urls):
                db.add(ProductImage(product_id=product.id, image_url=url, display_order=order, is_primary=order == 0))

            flavors = [
                FlavorOption(product_id=product.id, name=f.name, display_order=order)
                for order, f in enumerate(product_data.flavors)
            ]
            weights = [
                WeightOption(product_id=product.id, value=w.value, unit=w.unit, display_order=order)
                for order, w in enumerate(product_data.weights)
            ]
            db.add_all(flavors + weights)
            db.flush()

            seen_active = set()
            for variant_data in product_data.variants:
                flavor = ProductService._pick_option(flavors, variant_data.flavor_index, "flavor")
                weight = ProductService._pick_option(weights, variant_data.weight_index, "weight")
                key = (flavor.id if flavor else None, weight.id if weight else None)
                if variant_data.is_active:
                    if key in seen_active:
                        raise DuplicateVariant()
                    seen_active.add(key)

                variant = ProductVariant(
                    product_id=product.id,
                    flavor_id=key[0],
                    weight_id=key[1],
                    sku=variant_data.sku,
                    price=variant_data.price,
                    sale_price=variant_data.sale_price,
                    quantity=variant_data.quantity,
                    is_active=variant_data.is_active,
                )
                db.add(variant)
                db.flush()
                for order, url in enumerate(variant_data.image_urls):
                    db.add(VariantImage(variant_id=variant.id, image_url=url, display_order=order, is_primary=order == 0))

            db.commit()
        except (HTTPException, APIError):
            db.rollback()
            raise
        except Exception:
            db.rollback()
            logger.exception("product_create_failed", slug=slug)
            raise

        logger.info("product_created", product_id=product.id, slug=slug, variants=len(product_data.variants))
        return ProductService.get_product_by_slug(db, slug)

    @staticmethod
    def _pick_option(options: List[Any], index: Optional[int], dimension: str):
        if not options:
            if index is not None:
                raise APIError(status.HTTP_400_BAD_REQUEST, f"Product has no {dimension} options")
            return None
        if index is None:
            raise APIError(status.HTTP_400_BAD_REQUEST, f"Variant must reference a {dimension} option")
        if index >= len(options):
            raise APIError(
                status.HTTP_400_BAD_REQUEST,
                f"Unknown {dimension} option index {index}",
                errors=[{"field": f"{dimension}_index", "value": index}],
            )
        return options[index]

    @staticmethod
    def update_variant(db: Session, variant_id: int, variant_data: VariantUpdate) -> ProductVariant:
        """Update price, stock or availability of a variant (admin only)."""
        variant = ProductService.get_variant(db, variant_id)

        update_data = variant_data.model_dump(exclude_unset=True)
        if update_data.get("sale_price") == 0:
            update_data["sale_price"] = None
        for key, value in update_data.items():
            setattr(variant, key, value)

        if variant.is_active:
            try:
                ProductService._ensure_unique_active_combination(db, variant)
            except DuplicateVariant:
                db.rollback()
                raise

        db.commit()
        db.refresh(variant)
        logger.info("variant_updated", variant_id=variant.id, fields=sorted(update_data))
        return variant
