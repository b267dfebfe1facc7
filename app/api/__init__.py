from .auth import router as auth_router
from .settings import router as settings_router
from .clients import router as clients_router
from .services import router as services_router
from .appointments import router as appointments_router
from .orders import router as orders_router
from .budgets import router as budgets_router
from .receivables import router as receivables_router
from .payables import router as payables_router
from .costs import router as costs_router
from .finance import router as finance_router
from .materials import router as materials_router
from .dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "settings_router",
    "clients_router",
    "services_router",
    "appointments_router",
    "orders_router",
    "budgets_router",
    "receivables_router",
    "payables_router",
    "costs_router",
    "finance_router",
    "materials_router",
    "dashboard_router"
]
