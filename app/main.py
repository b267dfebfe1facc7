"""
Marcenaria API - Main Application
Back-office multi-tenant: clientes, orçamentos, pedidos, financeiro e estoque
"""
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.core import settings
from app.core.exceptions import AppError
from app.core.error_notifier import notify_error_async
from app.database import init_db
from app.api import (
    auth_router,
    settings_router,
    clients_router,
    services_router,
    appointments_router,
    orders_router,
    budgets_router,
    receivables_router,
    payables_router,
    costs_router,
    finance_router,
    materials_router,
    dashboard_router
)

# Rate limiting
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.api.auth import limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    await init_db()

    yield

    logger.info("Shutting down...")


# Middleware de headers de seguranca
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if "/auth" in request.url.path:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Back-office para marcenarias: orçamentos, pedidos, contas e estoque",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Headers de seguranca (adicionar ANTES do CORS)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Erros -> {"message": ...} ===

def format_validation_error(exc: RequestValidationError) -> str:
    """Primeiro erro como "campo.sub: mensagem" """
    errors = exc.errors()
    if not errors:
        return "Dados inválidos."

    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    ctx_error = (first.get("ctx") or {}).get("error")
    message = str(ctx_error) if ctx_error else first.get("msg", "inválido")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    return f"{'.'.join(loc)}: {message}" if loc else message


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": format_validation_error(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Erro interno em {request.method} {request.url.path}")
    notify_error_async(
        error_type="API_ERROR",
        error_message=f"{type(exc).__name__}: {exc}",
        error_details=traceback.format_exc(),
        endpoint=f"{request.method} {request.url.path}"
    )
    return JSONResponse(status_code=500, content={"message": "Erro interno."})


# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(clients_router, prefix="/api")
app.include_router(services_router, prefix="/api")
app.include_router(appointments_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(budgets_router, prefix="/api")
app.include_router(receivables_router, prefix="/api")
app.include_router(payables_router, prefix="/api")
app.include_router(costs_router, prefix="/api")
app.include_router(finance_router, prefix="/api")
app.include_router(materials_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
