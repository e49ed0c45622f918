from .addresses import router as addresses_router
from .admin import router as admin_router
from .auth import router as auth_router
from .categories import router as categories_router
from .content import router as content_router
from .customers import router as customers_router
from .drivers import router as drivers_router
from .orders import router as orders_router
from .products import router as products_router
from .reports import router as reports_router
from .settings import router as settings_router
from .uploads import router as uploads_router
from .users import router as users_router

__all__ = [
    "addresses_router",
    "admin_router",
    "auth_router",
    "categories_router",
    "content_router",
    "customers_router",
    "drivers_router",
    "orders_router",
    "products_router",
    "reports_router",
    "settings_router",
    "uploads_router",
    "users_router",
]
