"""FastAPI routes for the storefront: cart, checkout and payment callback."""

import os

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from ordering.api.schemas import (
    AddToCartRequest,
    ApplyCouponRequest,
    CartItemIdResponse,
    CartPricingResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfigureGatewayRequest,
    CouponResponse,
    GatewayConfigResponse,
    PaymentCallbackResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from ordering.cart.adjustments import get_adjustments
from ordering.cart.cart import encode_variants
from ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.store import CartStore, get_cart_store
from ordering.checkout.initiation import initiate_checkout
from ordering.checkout.reconciler import reconciler_for
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from shared.storage import get_session_storage

logger = structlog.get_logger(__name__)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Domain rule violations surface as 422 responses."""
    logger.info("Request rejected", path=request.url.path, errors=exc.messages)
    return JSONResponse(status_code=422, content={"detail": exc.messages})


def _cart_response(store: CartStore) -> CartResponse:
    return CartResponse.model_validate(store.snapshot())


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart() -> CartResponse:
    return _cart_response(get_cart_store())


@cart_router.post("/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(body: AddToCartRequest) -> CartItemIdResponse:
    store = get_cart_store()
    command = AddToCart(
        product_id=body.product_id,
        name=body.name,
        slug=body.slug,
        thumbnail=body.thumbnail,
        original_price=body.original_price,
        discount_price=body.discount_price,
        selected_variants=encode_variants(
            {key: variant.model_dump() for key, variant in body.selected_variants.items()}
        ),
        quantity=body.quantity,
    )
    item_id = store.dispatch(command)
    return CartItemIdResponse(item_id=item_id, cart=_cart_response(store))


@cart_router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item_quantity(item_id: str, body: UpdateCartQuantityRequest) -> CartResponse:
    store = get_cart_store()
    store.dispatch(UpdateCartQuantity(item_id=item_id, new_quantity=body.new_quantity))
    return _cart_response(store)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str) -> CartResponse:
    store = get_cart_store()
    store.dispatch(RemoveFromCart(item_id=item_id))
    return _cart_response(store)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart() -> CartResponse:
    store = get_cart_store()
    store.dispatch(ClearCart(reason="requested"))
    return _cart_response(store)


@cart_router.get("/pricing", response_model=CartPricingResponse)
async def get_cart_pricing() -> CartPricingResponse:
    """Subtotal, delivery fee, tax, discounts and grand total for the current cart."""
    subtotal = get_cart_store().cart.total
    adjustments = get_adjustments()
    await adjustments.ensure_current(subtotal)

    pricing = adjustments.pricing(subtotal)
    return CartPricingResponse(
        subtotal=pricing.subtotal,
        delivery_fee=pricing.delivery_fee,
        tax_total=pricing.tax_total,
        discount_total=pricing.discount_total,
        coupon_discount=pricing.coupon_discount,
        grand_total=pricing.grand_total,
        currency=pricing.currency,
        applied_coupon=adjustments.applied_coupon.code if adjustments.applied_coupon else None,
    )


@cart_router.post("/coupon", response_model=CouponResponse)
async def apply_coupon(body: ApplyCouponRequest) -> CouponResponse:
    """Validate a coupon against the cart total and apply it when valid.

    An invalid coupon is not an HTTP error: the response carries
    ``is_valid=False`` and the reason.
    """
    validation = await get_adjustments().apply_coupon(body.code, get_cart_store().cart.total)
    return CouponResponse(
        is_valid=validation.is_valid,
        code=validation.code,
        discount_amount=validation.discount_amount,
        coupon_type=validation.coupon_type,
        error_message=validation.error_message or None,
    )


@cart_router.delete("/coupon", response_model=StatusResponse)
async def remove_coupon() -> StatusResponse:
    get_adjustments().remove_coupon()
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(tags=["checkout"])


@checkout_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
async def start_checkout(body: CheckoutRequest) -> CheckoutResponse:
    """Freeze the cart into a checkout payload and open a gateway transaction."""
    session = await initiate_checkout(
        cart_store=get_cart_store(),
        gateway=get_gateway(),
        session=get_session_storage(),
        email=body.email,
        delivery_address=body.delivery_address.model_dump(exclude_none=True),
        delivery_option=body.delivery_option.model_dump(),
        payment_method=body.payment_method,
        user_id=body.user_id,
        notes=body.notes,
        callback_url=body.callback_url,
    )
    if not session.success:
        raise HTTPException(status_code=502, detail=session.message)

    return CheckoutResponse(
        reference=session.reference,
        amount=session.amount,
        authorization_url=session.authorization_url,
        access_code=session.access_code,
    )


@checkout_router.get("/payment/callback", response_model=PaymentCallbackResponse)
async def payment_callback(reference: str | None = None) -> PaymentCallbackResponse:
    """Reconcile the customer's return from the payment gateway.

    Repeated calls with the same reference share one reconciliation and
    return its state.
    """
    reconciler = reconciler_for(reference)
    callback = await reconciler.reconcile({"reference": reference} if reference else {})
    return PaymentCallbackResponse(
        reference=callback.reference,
        status=callback.status,
        message=callback.message,
        order_id=str(callback.order_id) if callback.order_id else None,
        order_number=callback.order_number,
        redirect_to=callback.redirect_to,
    )


@checkout_router.post("/checkout/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        link_should_fail=body.link_should_fail,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        link_should_fail=gateway.link_should_fail,
    )
