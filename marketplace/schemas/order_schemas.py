from datetime import datetime
from typing import List, Optional

from marketplace.constants.order_status import OrderStatus
from marketplace.schemas.base import ApiModel


class CreateOrderRequest(ApiModel):
    item_id: int


class UpdateOrderStatusRequest(ApiModel):
    status: OrderStatus


class VerifyPaymentRequest(ApiModel):
    payment_id: str
    signature: str


class OrderRead(ApiModel):
    id: str
    buyer_id: int
    item_id: int
    seller_id: int
    total_amount: float
    currency: str
    status: OrderStatus
    payment_provider: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order):
        data = order.model_dump()
        data["item_id"] = data.pop("project_id")
        return cls.model_validate(data)


class CreateOrderResponse(ApiModel):
    order: OrderRead
    client_secret: str
    provider: str
    public_key: Optional[str] = None


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListResponse(ApiModel):
    orders: List[OrderRead]
    pagination: Pagination


class VerifyPaymentResponse(ApiModel):
    message: str
    order: OrderRead


class OrderEventRead(ApiModel):
    id: str
    event_type: str
    label: str
    meta: Optional[dict] = None
    created_by: str
    created_at: datetime
