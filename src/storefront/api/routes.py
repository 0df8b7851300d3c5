"""FastAPI routes for the Storefront: checkout, orders, webhooks and admin sync."""

import os

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    ConfigureGatewayRequest,
    CreateMockOrderRequest,
    CreatePaymentIntentRequest,
    CreateProvisionalOrderRequest,
    GatewayConfigResponse,
    OrderHistoryResponse,
    OrderReferenceResponse,
    OrderResponse,
    OrderView,
    PaginationView,
    PaymentIncompleteResponse,
    PaymentIntentResponse,
    ProcessingResponse,
    ProductListResponse,
    ProductView,
    ProfileResponse,
    ProfileView,
    SyncOrdersResponse,
    SyncStat,
    SyncStatsResponse,
    UpdateProfileRequest,
    WebhookAckResponse,
)
from storefront.catalogue.product import Product
from storefront.customer.profile import update_profile
from storefront.domain import storefront
from storefront.gateway import get_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway, SignatureVerificationError
from storefront.identity_provider import get_identity_provider
from storefront.identity_provider.port import AuthenticationError, IdentityProvider, Principal
from storefront.order.checkout import start_checkout
from storefront.order.demo import CreateDemoOrder
from storefront.order.history import list_user_orders
from storefront.order.lookup import MAX_POLL_ATTEMPTS, LookupStatus, get_order, polling_delay_ms
from storefront.order.order import OrderStatus
from storefront.order.provisional import CreateProvisionalOrder, process_with_conflict_retry
from storefront.order.reconciliation import EventReconciler
from storefront.order.sweeper import get_sync_stats, sync_pending_orders

logger = structlog.get_logger(__name__)


def current_principal(
    authorization: str = Header(default=""),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token")
    return provider.verify_token(token.strip())


async def _off_event_loop(func, *args, **kwargs):
    """Run gateway-bound work in the threadpool, inside a storefront domain context."""

    def call():
        with storefront.domain_context():
            return func(*args, **kwargs)

    return await run_in_threadpool(call)


def _customer_fields(info) -> dict:
    if info is None:
        return {}
    return {
        "customer_id": info.customer_id,
        "customer_email": info.customer_email,
        "customer_name": info.customer_name,
        "customer_phone": info.customer_phone,
    }


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(tags=["checkout"])


@checkout_router.get("/products", response_model=ProductListResponse)
async def list_products() -> ProductListResponse:
    """List the catalogue."""
    products = current_domain.repository_for(Product)._dao.query.order_by("name").all().items
    return ProductListResponse(products=[ProductView(**product.to_dict_summary()) for product in products])


@checkout_router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    gateway: PaymentGateway = Depends(get_gateway),
) -> PaymentIntentResponse:
    """Start checkout for a product; returns the client secret for confirming the charge."""
    session = await _off_event_loop(
        start_checkout,
        body.product_id,
        body.quantity,
        gateway,
        customer=body.customer_info.as_contact() if body.customer_info else None,
    )
    return PaymentIntentResponse(
        client_secret=session.client_secret,
        payment_attempt_id=session.payment_attempt_id,
        amount=session.amount,
        currency=session.currency,
        demo=session.demo,
    )


@checkout_router.post("/create-provisional-order", response_model=OrderReferenceResponse)
async def create_provisional_order(body: CreateProvisionalOrderRequest) -> OrderReferenceResponse:
    """Record an in-flight order right after the client saw the charge succeed."""
    command = CreateProvisionalOrder(
        payment_attempt_id=body.payment_attempt_id,
        product_id=body.product_id,
        quantity=body.quantity,
        **_customer_fields(body.customer_info),
    )
    result = process_with_conflict_retry(command)
    return OrderReferenceResponse(order_id=result["order_id"], is_provisional=result["is_provisional"])


@checkout_router.post("/create-mock-order", response_model=OrderReferenceResponse)
async def create_mock_order(body: CreateMockOrderRequest) -> OrderReferenceResponse:
    """Record a demo-mode purchase."""
    command = CreateDemoOrder(
        payment_attempt_id=body.payment_attempt_id,
        product_id=body.product_id,
        quantity=body.quantity,
        **_customer_fields(body.customer_info),
    )
    result = process_with_conflict_retry(command)
    return OrderReferenceResponse(order_id=result["order_id"], is_provisional=result["is_provisional"])


@checkout_router.post("/webhooks", response_model=WebhookAckResponse)
async def receive_webhook(
    request: Request,
    stripe_signature: str = Header(default=""),
    gateway: PaymentGateway = Depends(get_gateway),
):
    """Reconcile a gateway webhook delivery."""
    payload = await request.body()
    try:
        result = EventReconciler(gateway).handle_event(payload, stripe_signature)
    except SignatureVerificationError as exc:
        logger.warning("Webhook signature rejected", error=str(exc))
        raise HTTPException(status_code=400, detail="Invalid webhook signature") from exc

    if not result.acknowledged:
        # Not acknowledging makes the gateway redeliver the event.
        return JSONResponse(status_code=500, content={"received": False, "error": "Event processing failed"})
    return WebhookAckResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(tags=["orders"])


@order_router.get("/orders/{payment_attempt_id}", response_model=OrderResponse)
async def fetch_order(
    payment_attempt_id: str,
    gateway: PaymentGateway = Depends(get_gateway),
):
    """Order for a payment attempt, or a processing signal while it is being recorded."""
    lookup = await _off_event_loop(get_order, payment_attempt_id, gateway)

    if lookup.status is LookupStatus.FOUND:
        return OrderResponse(order=OrderView.build(lookup.order, lookup.product, lookup.user))

    if lookup.status is LookupStatus.PROCESSING:
        body = ProcessingResponse(retry_after_ms=polling_delay_ms(1), max_attempts=MAX_POLL_ATTEMPTS)
        return JSONResponse(status_code=202, content=body.model_dump(by_alias=True))

    if lookup.status is LookupStatus.PAYMENT_INCOMPLETE:
        body = PaymentIncompleteResponse(payment_status=lookup.gateway_status)
        return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))

    return JSONResponse(status_code=404, content={"error": "Order not found"})


@order_router.get("/user/orders", response_model=OrderHistoryResponse)
async def user_orders(
    principal: Principal = Depends(current_principal),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: OrderStatus | None = None,
) -> OrderHistoryResponse:
    """Order history of the signed-in customer."""
    history = list_user_orders(principal, status=status.value if status else None, page=page, limit=limit)
    return OrderHistoryResponse(
        orders=[OrderView.build(order, product) for order, product in history["orders"]],
        pagination=PaginationView(**history["pagination"]),
    )


@order_router.put("/user/profile", response_model=ProfileResponse)
async def put_user_profile(
    body: UpdateProfileRequest,
    principal: Principal = Depends(current_principal),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> ProfileResponse:
    """Update the signed-in customer's name at the identity provider."""
    profile = await _off_event_loop(update_profile, principal, provider, body.first_name, body.last_name)
    return ProfileResponse(
        profile=ProfileView(subject=profile.subject, first_name=profile.first_name, last_name=profile.last_name)
    )


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/sync-orders", response_model=SyncOrdersResponse)
async def sync_orders(gateway: PaymentGateway = Depends(get_gateway)) -> SyncOrdersResponse:
    """Run a reconciliation sweep now."""
    report = await _off_event_loop(sync_pending_orders, gateway)
    return SyncOrdersResponse(synced=report.synced, failed=report.failed, skipped=report.skipped)


@admin_router.get("/sync-stats", response_model=SyncStatsResponse)
async def sync_stats() -> SyncStatsResponse:
    """Order counts by status and provisional flag."""
    return SyncStatsResponse(stats=[SyncStat(**stat) for stat in get_sync_stats()])


@admin_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(
    body: ConfigureGatewayRequest,
    gateway: PaymentGateway = Depends(get_gateway),
) -> GatewayConfigResponse:
    """Toggle the FakeGateway between configured and demo mode (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(configured=body.configured)
    return GatewayConfigResponse(gateway=type(gateway).__name__, configured=gateway.configured)
