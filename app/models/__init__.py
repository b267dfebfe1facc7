from .salon import Salon, User
from .client import Client, ClientType, SUPPLIER_TYPES
from .service import Service, Appointment, AppointmentStatus
from .order import Order, OrderItem, OrderStatus, SOLD_ORDER_STATUSES
from .budget import (
    Budget,
    BudgetItem,
    BudgetInstallment,
    BudgetStatus,
    OPEN_BUDGET_STATUSES,
    BUDGET_TRANSITIONS
)
from .finance import (
    Receivable,
    ReceivableInstallment,
    Payable,
    PayableInstallment,
    PaymentMode,
    PaymentMethod,
    InstallmentStatus
)
from .cost import Cost, CostType
from .material import Material, MaterialSupplierPrice, MaterialMovement, MaterialUnit, MovementType, MovementSource
from .cash import CashCategory, CashTransaction, CashType

__all__ = [
    "Salon",
    "User",
    "Client",
    "ClientType",
    "SUPPLIER_TYPES",
    "Service",
    "Appointment",
    "AppointmentStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "SOLD_ORDER_STATUSES",
    "Budget",
    "BudgetItem",
    "BudgetInstallment",
    "BudgetStatus",
    "OPEN_BUDGET_STATUSES",
    "BUDGET_TRANSITIONS",
    "Receivable",
    "ReceivableInstallment",
    "Payable",
    "PayableInstallment",
    "PaymentMode",
    "PaymentMethod",
    "InstallmentStatus",
    "Cost",
    "CostType",
    "Material",
    "MaterialSupplierPrice",
    "MaterialMovement",
    "MaterialUnit",
    "MovementType",
    "MovementSource",
    "CashCategory",
    "CashTransaction",
    "CashType"
]
