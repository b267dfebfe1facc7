"""
Marcenaria API - Order and Budget Schemas
"""
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field, model_validator

from app.models.budget import BudgetStatus
from app.models.finance import PaymentMode
from app.models.order import OrderStatus
from app.schemas.common import (
    CamelModel,
    InstallmentIn,
    ItemIn,
    ItemsIn,
    OptionalMethod,
    OptionalMode,
    OptionalUtcDatetime,
    PaymentTermsIn,
    upper_or_none
)

OptionalOrderStatus = Annotated[Optional[OrderStatus], BeforeValidator(upper_or_none)]
OptionalBudgetStatus = Annotated[Optional[BudgetStatus], BeforeValidator(upper_or_none)]


class OrderCreate(ItemsIn, PaymentTermsIn):
    client_id: str = Field(..., min_length=1)
    status: OptionalOrderStatus = None
    expected_delivery_at: OptionalUtcDatetime = None
    notes: Optional[str] = None


class OrderUpdate(CamelModel):
    """Atualização parcial; itens/pagamento só são reprocessados se enviados"""
    client_id: Optional[str] = Field(None, min_length=1)
    status: OptionalOrderStatus = None
    expected_delivery_at: OptionalUtcDatetime = None
    delivered_at: OptionalUtcDatetime = None
    notes: Optional[str] = None

    items: Optional[List[ItemIn]] = Field(None, min_length=1)
    discount_cents: Optional[int] = Field(None, ge=0)
    payment_mode: OptionalMode = None
    payment_method: OptionalMethod = None
    installments_count: Optional[int] = None
    first_due_date: OptionalUtcDatetime = None
    paid_now: Optional[bool] = None


# Campos que mexem em valores/parcelas do pedido
FINANCIAL_ORDER_FIELDS = {
    "items",
    "discount_cents",
    "payment_mode",
    "payment_method",
    "installments_count",
    "first_due_date",
    "paid_now",
}


class BudgetCreate(ItemsIn, PaymentTermsIn):
    client_id: str = Field(..., min_length=1)
    expected_delivery_at: OptionalUtcDatetime = None
    notes: Optional[str] = None
    installments: Optional[List[InstallmentIn]] = None

    @model_validator(mode="after")
    def check_custom_installments(self):
        if self.installments and self.payment_mode != PaymentMode.PARCELADO.value:
            raise ValueError("installments só pode ser informado com paymentMode PARCELADO.")
        return self


class BudgetFullUpdate(BudgetCreate):
    status: OptionalBudgetStatus = None


class BudgetUpdate(CamelModel):
    status: OptionalBudgetStatus = None
    expected_delivery_at: OptionalUtcDatetime = None
    notes: Optional[str] = None
