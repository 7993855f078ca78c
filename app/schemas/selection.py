from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from app.schemas.product import FlavorOptionResponse, ImageResponse, ProductVariantResponse, WeightOptionResponse
from app.services.variant_service import SelectionState


class SelectAction(BaseModel):
    dimension: Literal["flavor", "weight"]
    option_id: int = Field(..., gt=0)


class SelectionRequest(BaseModel):
    """Current selection plus the action the shopper just took."""
    flavor_id: Optional[int] = None
    weight_id: Optional[int] = None
    select: Optional[SelectAction] = None
    quantity: int = 1


class SelectionResponse(BaseModel):
    state: SelectionState
    flavor: Optional[FlavorOptionResponse] = None
    weight: Optional[WeightOptionResponse] = None
    variant: Optional[ProductVariantResponse] = None
    available_flavor_ids: List[Optional[int]]
    available_weight_ids: List[Optional[int]]
    quantity: int
    warning: Optional[str] = None
    purchasable: bool
    out_of_stock: bool
    images: List[ImageResponse] = []


class QuantityClampRequest(BaseModel):
    variant_id: Optional[int] = None
    requested: int


class QuantityClampResponse(BaseModel):
    quantity: int
    warning: Optional[str] = None
    limited_stock: bool
