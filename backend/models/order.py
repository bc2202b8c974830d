from pydantic import BaseModel
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    CANCELED = "CANCELED"
    REFUNDED = "REFUNDED"


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
