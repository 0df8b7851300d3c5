"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. The checkout client speaks camelCase, so every
schema aliases its fields.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerInfo(CamelModel):
    customer_id: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None

    def as_contact(self) -> dict:
        return {
            "id": self.customer_id,
            "email": self.customer_email,
            "name": self.customer_name,
            "phone": self.customer_phone,
        }


class ProductView(CamelModel):
    id: str
    name: str
    description: str | None = None
    price: int
    currency: str


class UserView(CamelModel):
    id: str
    email: str
    name: str | None = None


class OrderView(CamelModel):
    id: str
    payment_attempt_id: str
    user_id: str | None = None
    product_id: str
    quantity: int
    amount: int
    currency: str
    status: str
    customer_email: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    is_provisional: bool
    provisional_created_at: datetime | None = None
    sync_attempts: int = 0
    last_sync_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    product: ProductView | None = None
    user: UserView | None = None

    @classmethod
    def build(cls, order, product=None, user=None) -> "OrderView":
        return cls(
            id=str(order.id),
            payment_attempt_id=order.payment_attempt_id,
            user_id=str(order.user_id) if order.user_id else None,
            product_id=str(order.product_id),
            quantity=order.quantity,
            amount=order.amount,
            currency=order.currency,
            status=order.status,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            is_provisional=bool(order.is_provisional),
            provisional_created_at=order.provisional_created_at,
            sync_attempts=order.sync_attempts or 0,
            last_sync_at=order.last_sync_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
            product=ProductView(**product.to_dict_summary()) if product else None,
            user=UserView(**user.to_dict_summary()) if user else None,
        )


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(CamelModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    customer_info: CustomerInfo | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "productId": "3f1c2b7e-0d4a-4f5e-9a51-8c2a8b1f0e11",
                    "quantity": 1,
                    "customerInfo": {"customerEmail": "jane@example.com", "customerName": "Jane Doe"},
                }
            ]
        },
    )


class CreateProvisionalOrderRequest(CamelModel):
    payment_attempt_id: str = Field(min_length=1, max_length=255)
    product_id: str
    quantity: int = Field(default=1, ge=1)
    customer_info: CustomerInfo | None = None


class CreateMockOrderRequest(CamelModel):
    payment_attempt_id: str = Field(min_length=1, max_length=255)
    product_id: str
    quantity: int = Field(default=1, ge=1)
    customer_info: CustomerInfo | None = None


class ConfigureGatewayRequest(CamelModel):
    configured: bool = True


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class PaymentIntentResponse(CamelModel):
    client_secret: str
    payment_attempt_id: str
    amount: int
    currency: str
    demo: bool = False


class OrderReferenceResponse(CamelModel):
    success: bool = True
    order_id: str
    is_provisional: bool


class WebhookAckResponse(CamelModel):
    received: bool = True


class OrderResponse(CamelModel):
    order: OrderView


class ProcessingResponse(CamelModel):
    status: str = "processing"
    message: str = "Payment succeeded; the order is being recorded. Poll again shortly."
    retry_after_ms: int
    max_attempts: int


class PaymentIncompleteResponse(CamelModel):
    error: str = "Payment not completed"
    payment_status: str


class ProductListResponse(CamelModel):
    products: list[ProductView]


class PaginationView(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class OrderHistoryResponse(CamelModel):
    orders: list[OrderView]
    pagination: PaginationView


class SyncOrdersResponse(CamelModel):
    success: bool = True
    synced: int
    failed: int
    skipped: int


class SyncStat(CamelModel):
    status: str
    is_provisional: bool
    count: int


class SyncStatsResponse(CamelModel):
    success: bool = True
    stats: list[SyncStat]


class GatewayConfigResponse(CamelModel):
    gateway: str
    configured: bool


class UpdateProfileRequest(CamelModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class ProfileView(CamelModel):
    subject: str
    first_name: str | None = None
    last_name: str | None = None


class ProfileResponse(CamelModel):
    success: bool = True
    profile: ProfileView
