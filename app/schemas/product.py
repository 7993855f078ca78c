from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class ImageResponse(BaseModel):
    id: int
    image_url: str
    display_order: int
    is_primary: bool

    class Config:
        from_attributes = True


class FlavorOptionResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class WeightOptionResponse(BaseModel):
    id: int
    value: float
    unit: str
    label: str

    class Config:
        from_attributes = True


class ProductVariantResponse(BaseModel):
    id: int
    sku: str
    flavor_id: Optional[int]
    weight_id: Optional[int]
    price: float
    sale_price: Optional[float]
    quantity: int
    is_active: bool
    images: List[ImageResponse] = []

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    id: int
    name: str
    slug: str
    base_price: Optional[float]
    regular_price: Optional[float]
    has_sale: bool
    primary_image: Optional[str] = None
    in_stock: bool
    avg_rating: float
    review_count: int


class ProductDetailResponse(ProductListResponse):
    description: Optional[str]
    images: List[ImageResponse]
    flavor_options: List[FlavorOptionResponse]
    weight_options: List[WeightOptionResponse]
    variants: List[ProductVariantResponse]
    created_at: Optional[datetime] = None


class FlavorOptionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class WeightOptionCreate(BaseModel):
    value: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=10)


class VariantCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    # Indexes into the flavors / weights lists of the enclosing ProductCreate.
    flavor_index: Optional[int] = Field(None, ge=0)
    weight_index: Optional[int] = Field(None, ge=0)
    price: float = Field(..., gt=0)
    sale_price: Optional[float] = Field(None, gt=0)
    quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    image_urls: List[str] = []


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=250)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, gt=0)
    regular_price: Optional[float] = Field(None, gt=0)
    flavors: List[FlavorOptionCreate] = []
    weights: List[WeightOptionCreate] = []
    variants: List[VariantCreate] = []
    image_urls: List[str] = []

    @field_validator("variants")
    @classmethod
    def validate_variants_present(cls, value: List[VariantCreate]) -> List[VariantCreate]:
        if not value:
            raise ValueError("A product needs at least one variant")
        return value


class VariantUpdate(BaseModel):
    price: Optional[float] = Field(None, gt=0)
    sale_price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
