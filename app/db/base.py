from app.db.base_class import Base


# IMPORT ALL MODELS HERE (THIS REGISTERS THEM WITH Base.metadata)
from app.models.product import Product, FlavorOption, WeightOption, ProductVariant, ProductImage, VariantImage
from app.models.coupon import Coupon
from app.models.cart import Cart, CartItem
