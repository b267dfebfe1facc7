from .common import CamelModel, ItemIn, InstallmentIn, PaymentTermsIn
from .auth import RegisterRequest, LoginRequest, SalonSettingsUpdate
from .client import (
    ClientCreate,
    ClientUpdate,
    ServiceCreate,
    ServiceUpdate,
    AppointmentCreate,
    AppointmentUpdate
)
from .order import (
    OrderCreate,
    OrderUpdate,
    FINANCIAL_ORDER_FIELDS,
    BudgetCreate,
    BudgetUpdate,
    BudgetFullUpdate
)
from .finance import (
    ReceivableCreate,
    ReceivableUpdate,
    InstallmentUpdate,
    PayableCreate,
    PayableUpdate,
    PayableInstallmentUpdate,
    CashCategoryCreate,
    CashTransactionCreate,
    CashTransactionUpdate,
    CostCreate,
    CostUpdate
)
from .material import MaterialCreate, MaterialUpdate, MovementCreate, PurchasePayableIn, SupplierPriceIn

__all__ = [
    "CamelModel",
    "ItemIn",
    "InstallmentIn",
    "PaymentTermsIn",
    "RegisterRequest",
    "LoginRequest",
    "SalonSettingsUpdate",
    "ClientCreate",
    "ClientUpdate",
    "ServiceCreate",
    "ServiceUpdate",
    "AppointmentCreate",
    "AppointmentUpdate",
    "OrderCreate",
    "OrderUpdate",
    "FINANCIAL_ORDER_FIELDS",
    "BudgetCreate",
    "BudgetUpdate",
    "BudgetFullUpdate",
    "ReceivableCreate",
    "ReceivableUpdate",
    "InstallmentUpdate",
    "PayableCreate",
    "PayableUpdate",
    "PayableInstallmentUpdate",
    "CashCategoryCreate",
    "CashTransactionCreate",
    "CashTransactionUpdate",
    "CostCreate",
    "CostUpdate",
    "MaterialCreate",
    "MaterialUpdate",
    "MovementCreate",
    "PurchasePayableIn",
    "SupplierPriceIn"
]
