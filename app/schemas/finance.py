"""
Marcenaria API - Finance Schemas
Contas a receber/pagar, caixa e custos
"""
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field

from app.models.cash import CashType
from app.models.cost import CostType
from app.models.finance import InstallmentStatus
from app.schemas.common import (
    CamelModel,
    InstallmentIn,
    OptionalMethod,
    OptionalUtcDatetime,
    upper_or_none
)

OptionalInstallmentStatus = Annotated[Optional[InstallmentStatus], BeforeValidator(upper_or_none)]
OptionalCashType = Annotated[Optional[CashType], BeforeValidator(upper_or_none)]
OptionalCostType = Annotated[Optional[CostType], BeforeValidator(upper_or_none)]


# === Contas a receber / pagar ===

class ReceivableCreate(CamelModel):
    order_id: str = Field(..., min_length=1)
    method: OptionalMethod = None
    installments: List[InstallmentIn] = Field(..., min_length=1)


class ReceivableUpdate(CamelModel):
    method: OptionalMethod = None


class InstallmentUpdate(CamelModel):
    status: OptionalInstallmentStatus = None
    paid_at: OptionalUtcDatetime = None
    method: OptionalMethod = None


class PayableInstallmentUpdate(InstallmentUpdate):
    amount_cents: Optional[int] = Field(None, gt=0)
    due_date: OptionalUtcDatetime = None


class PayableCreate(CamelModel):
    description: str = Field(..., min_length=2, max_length=255)
    supplier_id: Optional[str] = None
    method: OptionalMethod = None
    notes: Optional[str] = None
    installments: List[InstallmentIn] = Field(..., min_length=1)


class PayableUpdate(CamelModel):
    description: Optional[str] = Field(None, min_length=2, max_length=255)
    supplier_id: Optional[str] = None
    notes: Optional[str] = None


# === Caixa ===

class CashCategoryCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    type: OptionalCashType = None


class CashTransactionCreate(CamelModel):
    type: Annotated[CashType, BeforeValidator(upper_or_none)]
    name: str = Field(..., min_length=2, max_length=255)
    amount_cents: int = Field(..., gt=0)
    occurred_at: OptionalUtcDatetime = None
    category_id: Optional[str] = None
    notes: Optional[str] = None


class CashTransactionUpdate(CamelModel):
    type: OptionalCashType = None
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    amount_cents: Optional[int] = Field(None, gt=0)
    occurred_at: OptionalUtcDatetime = None
    category_id: Optional[str] = None
    notes: Optional[str] = None


# === Custos ===

class CostCreate(CamelModel):
    type: OptionalCostType = None
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    amount_cents: int = Field(..., gt=0)
    occurred_at: OptionalUtcDatetime = None
    is_recurring: bool = False
    recurring_group_id: Optional[str] = Field(None, max_length=64)
    supplier_id: Optional[str] = None


class CostUpdate(CamelModel):
    type: OptionalCostType = None
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    amount_cents: Optional[int] = Field(None, gt=0)
    occurred_at: OptionalUtcDatetime = None
    is_recurring: Optional[bool] = None
    supplier_id: Optional[str] = None
