from app.models.product import Product, ProductImage, FlavorOption, WeightOption, ProductVariant, VariantImage
from app.models.coupon import Coupon, DiscountType
from app.models.cart import Cart, CartItem
