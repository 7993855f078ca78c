from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.base_class import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(200), nullable=False, index=True)
    slug = Column(String(250), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Pricing (falls back to the first variant when unset)
    base_price = Column(Float, nullable=True)
    regular_price = Column(Float, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Ratings
    avg_rating = Column(Float, default=0.0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.display_order",
    )
    flavor_options = relationship(
        "FlavorOption",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="FlavorOption.display_order",
    )
    weight_options = relationship(
        "WeightOption",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="WeightOption.display_order",
    )
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    @property
    def has_sale(self) -> bool:
        return (
            self.base_price is not None
            and self.regular_price is not None
            and self.base_price < self.regular_price
        )


Index('idx_product_slug_active', Product.slug, Product.is_active)


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, default=0)
    is_primary = Column(Boolean, default=False)

    # Relationships
    product = relationship("Product", back_populates="images")


class FlavorOption(Base):
    __tablename__ = "flavor_options"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)  # Chocolate, Vanilla, etc.
    display_order = Column(Integer, default=0, nullable=False)

    # Relationships
    product = relationship("Product", back_populates="flavor_options")


class WeightOption(Base):
    __tablename__ = "weight_options"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    value = Column(Float, nullable=False)  # 1, 2.5, 500
    unit = Column(String(10), nullable=False)  # kg, g, lb
    display_order = Column(Integer, default=0, nullable=False)

    # Relationships
    product = relationship("Product", back_populates="weight_options")

    @property
    def label(self) -> str:
        value = int(self.value) if float(self.value).is_integer() else self.value
        return f"{value}{self.unit}"


class ProductVariant(Base):
    """Handles Flavor + Weight + Stock per variant"""
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    flavor_id = Column(Integer, ForeignKey("flavor_options.id"), nullable=True)
    weight_id = Column(Integer, ForeignKey("weight_options.id"), nullable=True)
    sku = Column(String(100), unique=True, nullable=False, index=True)

    price = Column(Float, nullable=False)
    sale_price = Column(Float, nullable=True)
    quantity = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    product = relationship("Product", back_populates="variants")
    flavor = relationship("FlavorOption")
    weight = relationship("WeightOption")
    images = relationship(
        "VariantImage",
        back_populates="variant",
        cascade="all, delete-orphan",
        order_by="VariantImage.display_order",
    )

    @property
    def effective_price(self) -> float:
        if self.sale_price is not None and self.sale_price > 0:
            return self.sale_price
        return self.price

    @property
    def details(self) -> str:
        parts = []
        if self.flavor is not None:
            parts.append(self.flavor.name)
        if self.weight is not None:
            parts.append(self.weight.label)
        return " • ".join(parts)


Index('idx_variant_combination', ProductVariant.product_id, ProductVariant.flavor_id, ProductVariant.weight_id)


class VariantImage(Base):
    __tablename__ = "variant_images"

    id = Column(Integer, primary_key=True, index=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id"), nullable=False)
    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, default=0)
    is_primary = Column(Boolean, default=False)

    # Relationships
    variant = relationship("ProductVariant", back_populates="images")
