import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import (
    addresses_router,
    admin_router,
    auth_router,
    categories_router,
    content_router,
    customers_router,
    drivers_router,
    orders_router,
    products_router,
    reports_router,
    settings_router,
    uploads_router,
    users_router,
)
from config import settings
from errors import RateLimitedError, ServiceError
from rate_limiter import client_ip, limiter
from schemas import HealthResponse

logger = logging.getLogger("pizza-delivery")

SERVICE_NAME = "pizza-delivery-api"
SECURITY_LOGGED_PREFIXES = ("/api/auth/", "/api/admin/", "/api/orders")

app = FastAPI(title="Pizza Delivery API")

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(settings_router)
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(users_router)
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(orders_router)
app.include_router(drivers_router)
app.include_router(customers_router)
app.include_router(addresses_router)
app.include_router(content_router)
app.include_router(uploads_router)
app.include_router(reports_router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


@app.on_event("startup")
async def _on_startup() -> None:
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values for production."
        )


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    limiter.cleanup()


@app.middleware("http")
async def log_requests(request, call_next):
    path = request.url.path
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "")
        logger.info("CORS preflight %s %s origin=%s", request.method, path, origin)
    elif path.startswith(SECURITY_LOGGED_PREFIXES):
        logger.info(
            "Security %s %s ip=%s agent=%s",
            request.method,
            path,
            client_ip(request),
            request.headers.get("user-agent", ""),
        )
    response = await call_next(request)
    return response


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(service=SERVICE_NAME, status="ok")


@app.get("/api/diag/cors")
async def cors_diag():
    return {
        "allow_origins": allow_origins,
        "allow_credentials": True,
    }
