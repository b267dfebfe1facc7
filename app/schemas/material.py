"""
Marcenaria API - Material Schemas
"""
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, Field

from app.models.material import MaterialUnit, MovementSource, MovementType
from app.schemas.common import CamelModel, OptionalMethod, OptionalUtcDatetime, upper_or_none

OptionalUnit = Annotated[Optional[MaterialUnit], BeforeValidator(upper_or_none)]
OptionalSource = Annotated[Optional[MovementSource], BeforeValidator(upper_or_none)]


class SupplierPriceIn(CamelModel):
    supplier_id: str = Field(..., min_length=1)
    unit_cost_cents: int = Field(..., ge=0)


class MaterialCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    unit: OptionalUnit = None
    sku: Optional[str] = Field(None, max_length=60)
    default_unit_cost_cents: int = Field(0, ge=0)
    min_qty: float = Field(0, ge=0)
    notes: Optional[str] = None
    supplier_prices: List[SupplierPriceIn] = []


class MaterialUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    unit: OptionalUnit = None
    sku: Optional[str] = Field(None, max_length=60)
    default_unit_cost_cents: Optional[int] = Field(None, ge=0)
    min_qty: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    is_active: Optional[bool] = None
    supplier_prices: Optional[List[SupplierPriceIn]] = None


class PurchasePayableIn(CamelModel):
    """Gera conta a pagar a partir de uma entrada de estoque"""
    enabled: bool = False
    installments_count: int = 1
    first_due_date: OptionalUtcDatetime = None
    method: OptionalMethod = None
    paid_now: bool = False
    description: Optional[str] = Field(None, max_length=255)


class MovementCreate(CamelModel):
    material_id: str = Field(..., min_length=1)
    type: Annotated[MovementType, BeforeValidator(upper_or_none)]
    source: OptionalSource = None
    qty: float = Field(..., gt=0)
    unit_cost_cents: Optional[int] = Field(None, ge=0)
    supplier_id: Optional[str] = None
    nf_number: Optional[str] = Field(None, max_length=60)
    order_id: Optional[str] = None
    notes: Optional[str] = None
    occurred_at: OptionalUtcDatetime = None
    payable: Optional[PurchasePayableIn] = None
