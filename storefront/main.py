"""
Storefront Application

The Lens: a small shop for trending electronics and home decor. Serves the
storefront API (catalog, cart, login with phone verification, checkout and
an admin console) on top of the store backend.
"""

import asyncio
import os
import logging
from contextlib import asynccontextmanager, suppress
from datetime import date

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

from .core.config import settings
from .core.content import DEFAULT_SITE_CONTENT
from .routes import (
    admin_router,
    cart_router,
    checkout_router,
    content_router,
    login_router,
    products_router,
)
from .routes import deps
from .utils.assets import generated_image_url, resolve_base_path

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SESSION_CLEANUP_INTERVAL_SECONDS = 3600


async def _cleanup_sessions_periodically() -> None:
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL_SECONDS)
        if deps.session_manager is not None:
            deps.session_manager.cleanup_old_sessions(settings.session_max_age_hours)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"Backend URL: {settings.backend_url}")
    logger.info(f"Durable cart storage: {'enabled' if settings.durable_storage_configured else 'in-memory'}")

    cleanup_task = asyncio.create_task(_cleanup_sessions_periodically())

    yield

    logger.info(f"{settings.app_name} shutting down...")
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task

    if deps.session_manager is not None:
        deps.session_manager.close_all()
    if deps.backend_client is not None:
        await deps.backend_client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Storefront for trending electronics and home decor",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.settings = settings
app.state.content = DEFAULT_SITE_CONTENT

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[deps.SESSION_HEADER],
)

# Public assets and templates
templates_dir = os.path.join(os.path.dirname(__file__), "templates")

if settings.public_dir and os.path.exists(settings.public_dir):
    app.mount("/assets", StaticFiles(directory=os.path.join(settings.public_dir, "assets"), check_dir=False), name="assets")

templates = Jinja2Templates(directory=templates_dir) if os.path.exists(templates_dir) else None

# Include routers
app.include_router(content_router)
app.include_router(products_router)
app.include_router(cart_router)
app.include_router(login_router)
app.include_router(checkout_router)
app.include_router(admin_router)


@app.get("/")
async def home(request: Request):
    """Home page"""
    content = request.app.state.content
    if templates:
        base_path = resolve_base_path(request.url.path, settings.base_path)
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "title": settings.app_name,
                "content": content,
                "copyright": content.footer.copyright(date.today().year, content.brand.name),
                "hero_image": generated_image_url("the-lens-hero.dim_1600x600.png", base_path),
                "logo_image": generated_image_url("the-lens-logo.dim_512x512.png", base_path),
            },
        )
    return {
        "message": f"{settings.app_name} API",
        "docs": "/docs",
        "endpoints": {
            "content": "/api/content",
            "products": "/api/products",
            "cart": "/api/cart",
            "login": "/api/login",
            "checkout": "/api/checkout",
            "admin": "/api/admin",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "backend_url": settings.backend_url,
        "durable_storage": settings.durable_storage_configured,
        "active_sessions": len(deps.session_manager.sessions) if deps.session_manager else 0,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
