from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# IMPORTANT:
# This imports ALL models so SQLAlchemy registers tables + FKs correctly
import app.models  # noqa: F401

from app.core.config import settings
from app.core.db import create_all
from app.core.errors import install_exception_handlers
from app.core.log import configure_logging
from app.core.middleware import SessionGateMiddleware

# Routers
from app.routers.auth import router as auth_router
from app.routers.me import router as me_router

from app.routers.catalog import router as catalog_router
from app.routers.site import router as site_router
from app.routers.content import router as content_router

from app.routers.coupons import router as coupons_router
from app.routers.payments import router as payments_router
from app.routers.invoice import router as invoice_router

from app.routers.admin_catalog import router as admin_catalog_router
from app.routers.admin_content import router as admin_content_router
from app.routers.admin_coupons import router as admin_coupons_router
from app.routers.admin_orders import router as admin_orders_router
from app.routers.admin_users import router as admin_users_router
from app.routers.admin_contacts import router as admin_contacts_router
from app.routers.admin_analytics import router as admin_analytics_router
from app.routers.admin_operations import router as admin_operations_router

configure_logging(settings)

app = FastAPI(title="WebinarPro API")

# ✅ CORS for the storefront (cookies need allow_credentials)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionGateMiddleware)

install_exception_handlers(app)


@app.on_event("startup")
async def _startup() -> None:
    await create_all()


Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.UPLOAD_DIR), name="storage")

API = "/api"

# Auth & account
app.include_router(auth_router, prefix=API)
app.include_router(me_router, prefix=API)

# Public catalog, site + content
app.include_router(catalog_router, prefix=API)
app.include_router(site_router, prefix=API)
app.include_router(content_router, prefix=API)

# Checkout
app.include_router(coupons_router, prefix=API)
app.include_router(payments_router, prefix=API)
app.include_router(invoice_router, prefix=API)

# Admin
app.include_router(admin_catalog_router, prefix=API)
app.include_router(admin_content_router, prefix=API)
app.include_router(admin_coupons_router, prefix=API)
app.include_router(admin_orders_router, prefix=API)
app.include_router(admin_users_router, prefix=API)
app.include_router(admin_contacts_router, prefix=API)
app.include_router(admin_analytics_router, prefix=API)
app.include_router(admin_operations_router, prefix=API)
