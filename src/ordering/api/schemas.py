"""Pydantic request/response schemas for the cart and checkout API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class SelectedVariantSchema(BaseModel):
    id: str | None = None
    name: str | None = None
    value: str | None = None
    price_adjustment: float = 0.0

    model_config = {"extra": "allow"}


class CartItemSchema(BaseModel):
    id: str
    product_id: str
    name: str | None = None
    slug: str | None = None
    thumbnail: str | None = None
    original_price: float
    discount_price: float | None = None
    selected_variants: dict[str, SelectedVariantSchema] = Field(default_factory=dict)
    quantity: int
    subtotal: float


class DeliveryAddressSchema(BaseModel):
    full_name: str
    phone: str
    email: str | None = None
    address_line: str
    city: str
    region: str | None = None
    landmark: str | None = None

    model_config = {"extra": "allow"}


class DeliveryOptionSchema(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0, default=0.0)

    model_config = {"extra": "allow"}


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    name: str | None = None
    slug: str | None = None
    thumbnail: str | None = None
    original_price: float = Field(ge=0)
    discount_price: float | None = Field(ge=0, default=None)
    selected_variants: dict[str, SelectedVariantSchema] = Field(default_factory=dict)
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "name": "Kente Scarf",
                    "original_price": 120.0,
                    "discount_price": 100.0,
                    "selected_variants": {
                        "size": {"id": "v-1", "name": "Size", "value": "L", "price_adjustment": 5.0},
                    },
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class ApplyCouponRequest(BaseModel):
    code: str


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    email: str
    delivery_address: DeliveryAddressSchema
    delivery_option: DeliveryOptionSchema
    payment_method: str = "paystack"
    user_id: str | None = None
    notes: str | None = None
    callback_url: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Payment was declined"
    link_should_fail: bool = False


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    items: list[CartItemSchema]
    total: float
    item_count: int = Field(alias="itemCount")

    model_config = {"populate_by_name": True}


class CartItemIdResponse(BaseModel):
    item_id: str
    cart: CartResponse


class CartPricingResponse(BaseModel):
    subtotal: float
    delivery_fee: float
    tax_total: float
    discount_total: float
    coupon_discount: float
    grand_total: float
    currency: str
    applied_coupon: str | None = None


class CouponResponse(BaseModel):
    is_valid: bool
    code: str | None = None
    discount_amount: float = 0.0
    coupon_type: str | None = None
    error_message: str | None = None


class CheckoutResponse(BaseModel):
    reference: str
    amount: int
    authorization_url: str | None = None
    access_code: str | None = None


class PaymentCallbackResponse(BaseModel):
    reference: str | None = None
    status: str
    message: str
    order_id: str | None = None
    order_number: str | None = None
    redirect_to: str | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    link_should_fail: bool


class StatusResponse(BaseModel):
    status: str = "ok"
