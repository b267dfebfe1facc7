"""
Marcenaria API - Shared Schemas
JSON em camelCase, atributos em snake_case
"""
from datetime import datetime
from typing import Annotated, Optional, List

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.finance import PaymentMode, PaymentMethod
from app.services.billing import normalize_payment_terms
from app.utils.dates import to_naive_utc


def upper_or_none(value):
    """Enums aceitam minúsculas; string vazia equivale a não informado"""
    if isinstance(value, str):
        value = value.strip().upper()
        return value or None
    return value


def _coerce_datetime(value):
    """Aceita "YYYY-MM-DD" além de ISO completo; vazio vira None"""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if len(value) == 10:
            return datetime.fromisoformat(value)
    return value


UtcDatetime = Annotated[datetime, BeforeValidator(_coerce_datetime), AfterValidator(to_naive_utc)]
OptionalUtcDatetime = Annotated[Optional[datetime], BeforeValidator(_coerce_datetime), AfterValidator(to_naive_utc)]
OptionalMethod = Annotated[Optional[PaymentMethod], BeforeValidator(upper_or_none)]
OptionalMode = Annotated[Optional[PaymentMode], BeforeValidator(upper_or_none)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class ItemIn(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    quantity: int = Field(1, gt=0)
    unit_price_cents: int = Field(0, ge=0)

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        return 1 if v is None else v

    @field_validator("unit_price_cents", mode="before")
    @classmethod
    def default_price(cls, v):
        return 0 if v is None else v


class InstallmentIn(CamelModel):
    due_date: UtcDatetime
    amount_cents: int = Field(..., gt=0)
    method: OptionalMethod = None


class PaymentTermsIn(CamelModel):
    """Campos de pagamento comuns a pedido e orçamento"""
    payment_mode: OptionalMode = None
    payment_method: OptionalMethod = None
    installments_count: Optional[int] = None
    first_due_date: OptionalUtcDatetime = None
    paid_now: bool = False

    @model_validator(mode="after")
    def check_terms(self):
        terms = normalize_payment_terms(
            self.payment_mode, self.payment_method, self.installments_count, self.paid_now
        )
        self.payment_mode = terms.mode
        self.installments_count = terms.installments_count
        self.paid_now = terms.paid_now
        return self


class ItemsIn(CamelModel):
    items: List[ItemIn] = Field(..., min_length=1)
    discount_cents: int = Field(0, ge=0)

    @field_validator("discount_cents", mode="before")
    @classmethod
    def default_discount(cls, v):
        return 0 if v is None else v
