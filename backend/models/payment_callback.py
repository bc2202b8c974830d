from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class SplitPaymentLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    iban: str = ""
    status: Optional[str] = None
    amount: Optional[float] = None
    percent: Optional[float] = None
    description: Optional[str] = None
    reject_reason: Optional[str] = None


class SplitDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    split_status: Optional[str] = None
    currency: Optional[str] = None
    request_channel: Optional[str] = None
    split_reject_reason: Optional[str] = None
    split_payments: List[SplitPaymentLine] = []


class GatewayOrderStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    value: Optional[str] = None


class CallbackBody(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    order_id: str = Field(..., min_length=1)
    order_status: Optional[GatewayOrderStatus] = None
    status: Optional[str] = None
    split: Optional[SplitDetails] = None

    @property
    def gateway_status(self) -> str:
        if self.order_status and self.order_status.key:
            return self.order_status.key
        return self.status or "UNKNOWN"


class SplitPaymentEvent(BaseModel):
    event: Literal["split_payment"]
    zoned_request_time: Optional[str] = None
    body: CallbackBody


class OrderPaymentEvent(BaseModel):
    event: Literal["order_payment"]
    zoned_request_time: Optional[str] = None
    body: CallbackBody


PaymentCallbackEvent = Annotated[
    Union[SplitPaymentEvent, OrderPaymentEvent],
    Field(discriminator="event"),
]

_callback_adapter = TypeAdapter(PaymentCallbackEvent)


def parse_payment_callback(payload: dict) -> Union[SplitPaymentEvent, OrderPaymentEvent]:
    """Raises pydantic.ValidationError for any shape other than the two known events."""
    return _callback_adapter.validate_python(payload)
