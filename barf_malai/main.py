"""
FastAPI Application Entry Point

Barf Malai Ordering - storefront and admin dashboard over the sheet
web app. Supports the Mock sheet (development) and the deployed web app
(production).

Endpoints:
    - GET /api/storefront: Full storefront view
    - GET /api/menu: Categories and filtered products
    - /api/cart/...: Cart mutations
    - POST /api/checkout: Place an order
    - /admin/...: Login, catalog CRUD, order status, bills, image upload
    - GET /health: Remote service health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from barf_malai.core.config import get_settings, setup_logging
from barf_malai.schemas import (
    AddToCartRequest,
    CategoryCreate,
    ErrorResponse,
    LoginRequest,
    QuantityChangeRequest,
    StatusUpdateRequest,
)
from barf_malai.services.admin import (
    AdminAuthError,
    AdminController,
    AdminValidationError,
)
from barf_malai.services.checkout import CheckoutFlow
from barf_malai.services.images import STRATEGIES, get_image_uploader
from barf_malai.services.rpc import RpcError, RpcTimeoutError, get_rpc_client
from barf_malai.state import AppState
from barf_malai.storage import LocalStorage, StorageError
from barf_malai.views import (
    CartPanel,
    StorefrontView,
    render_cart,
    render_categories,
    render_products,
    render_storefront,
)

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the storefront state and admin controller, then load the menu.

    A fresh cached menu is shown at once and refreshed in the background;
    without one, startup waits for the first fetch.
    """
    settings = get_settings()
    logger.info("=" * 60)
    logger.info(f"🍦 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    storage = LocalStorage.from_settings(settings)
    state = AppState(get_rpc_client("storefront"), storage, settings=settings)
    state.cart.load()
    admin = AdminController(get_rpc_client("admin"), settings=settings)

    app.state.storefront = state
    app.state.admin = admin
    logger.info(f"✅ Storefront RPC: {state.rpc.provider_name}")
    logger.info(f"✅ Admin RPC: {admin.rpc.provider_name}")

    served_from_cache = state.render_from_cache()
    menu_task = asyncio.create_task(state.load_menu_data(use_cache=False))
    if not served_from_cache:
        await menu_task

    logger.info("✅ Application ready!")

    yield  # Application runs

    logger.info("Shutting down...")
    if not menu_task.done():
        menu_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await menu_task
    await state.rpc.aclose()
    if admin.rpc is not state.rpc:
        await admin.rpc.aclose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Menu, cart and checkout for the storefront plus the admin dashboard, "
        "backed by a spreadsheet web app."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_state(request: Request) -> AppState:
    return request.app.state.storefront


def get_admin(request: Request) -> AdminController:
    return request.app.state.admin


def get_logged_in_admin(admin: AdminController = Depends(get_admin)) -> AdminController:
    try:
        admin.require_login()
    except AdminAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return admin


def rpc_http_error(error: RpcError) -> HTTPException:
    """Map an RPC failure to the HTTP status the client sees."""
    if isinstance(error, RpcTimeoutError):
        return HTTPException(status_code=504, detail=error.message)
    return HTTPException(status_code=502, detail=error.message)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍦 Welcome to {settings.restaurant_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "storefront": "/api/storefront",
        "health": "/health",
    }


@app.get("/health", tags=["Health"], summary="System Health Check")
async def health_check(state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Verify the sheet web app answers and local storage is readable."""
    sheet_ok = await state.rpc.health_check()
    try:
        state.storage.get_item(state.cart.STORAGE_KEY)
        storage_ok = True
    except StorageError as e:
        logger.error(f"Health check: storage unreadable - {e}")
        storage_ok = False

    return {
        "status": "operational" if sheet_ok and storage_ok else "degraded",
        "sheet_service": "healthy" if sheet_ok else "unhealthy",
        "storage": "healthy" if storage_ok else "unhealthy",
        "provider": state.rpc.provider_name,
        "menu_loaded": state.menu_loaded,
        "timestamp": datetime.now().isoformat(),
    }


# =============================================================================
# STOREFRONT ENDPOINTS
# =============================================================================

@app.get("/api/storefront", response_model=StorefrontView, tags=["Storefront"])
async def storefront(state: AppState = Depends(get_state)) -> StorefrontView:
    return render_storefront(state)


@app.get("/api/menu", tags=["Storefront"])
async def menu(
    category: Optional[str] = Query(None),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    """Categories plus the product grid for ``category`` (default: current)."""
    if category is not None:
        state.filter_by_category(category)
    return {
        "categories": render_categories(state),
        "grid": render_products(state),
        "error": state.menu_error,
    }


@app.post("/api/menu/refresh", tags=["Storefront"])
async def refresh_menu(state: AppState = Depends(get_state)) -> dict[str, Any]:
    loaded = await state.refresh_menu()
    if not loaded:
        raise HTTPException(status_code=502, detail=f"Failed to load menu: {state.menu_error}")
    return {"success": True, "categories": len(state.categories), "products": len(state.products)}


@app.get("/api/cart", response_model=CartPanel, tags=["Cart"])
async def get_cart(state: AppState = Depends(get_state)) -> CartPanel:
    return render_cart(state)


@app.post("/api/cart/items", response_model=CartPanel, tags=["Cart"])
async def add_to_cart(
    body: AddToCartRequest,
    state: AppState = Depends(get_state),
) -> CartPanel:
    state.add_to_cart(body.product_id)
    return render_cart(state)


@app.patch("/api/cart/items/{product_id}", response_model=CartPanel, tags=["Cart"])
async def adjust_cart_item(
    product_id: int,
    body: QuantityChangeRequest,
    state: AppState = Depends(get_state),
) -> CartPanel:
    state.cart.adjust(product_id, body.delta)
    return render_cart(state)


@app.delete("/api/cart/items/{product_id}", response_model=CartPanel, tags=["Cart"])
async def remove_cart_item(
    product_id: int,
    state: AppState = Depends(get_state),
) -> CartPanel:
    state.cart.remove(product_id)
    return render_cart(state)


@app.delete("/api/cart", response_model=CartPanel, tags=["Cart"])
async def clear_cart(state: AppState = Depends(get_state)) -> CartPanel:
    state.cart.clear()
    return render_cart(state)


@app.post("/api/cart/toggle", response_model=CartPanel, tags=["Cart"])
async def toggle_cart(state: AppState = Depends(get_state)) -> CartPanel:
    state.toggle_cart()
    return render_cart(state)


@app.post(
    "/api/checkout",
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    tags=["Checkout"],
)
async def checkout(
    body: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    """Validate the form and place the order."""
    result = await CheckoutFlow(state).submit(body)
    if not result.success:
        status = 502 if result.error_code == "remote_error" else 400
        raise HTTPException(status_code=status, detail=result.error_message)
    return result.to_dict()


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@app.post("/admin/login", tags=["Admin"])
async def admin_login(
    body: LoginRequest,
    admin: AdminController = Depends(get_admin),
) -> dict[str, bool]:
    try:
        authenticated = await admin.login(body.password)
    except RpcError as e:
        raise rpc_http_error(e)
    if not authenticated:
        raise HTTPException(status_code=401, detail="Invalid password")
    return {"authenticated": True}


@app.post("/admin/logout", tags=["Admin"])
async def admin_logout(admin: AdminController = Depends(get_admin)) -> dict[str, bool]:
    admin.logout()
    return {"authenticated": False}


@app.get("/admin/dashboard", tags=["Admin"])
async def admin_dashboard(
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, Any]:
    try:
        snapshot = await admin.load_dashboard()
    except RpcError as e:
        raise rpc_http_error(e)
    return {
        "stats": snapshot.stats.model_dump(by_alias=True),
        "categories": [c.model_dump(by_alias=True) for c in snapshot.categories],
        "products": [p.model_dump() for p in snapshot.products],
        "orders": [o.model_dump(by_alias=True) for o in snapshot.orders],
        "sales": [{"label": label, "total": total} for label, total in admin.sales_series()],
    }


@app.post("/admin/categories", tags=["Admin"])
async def admin_add_category(
    body: CategoryCreate,
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, bool]:
    try:
        await admin.add_category(body.name, body.image)
    except AdminValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RpcError as e:
        raise rpc_http_error(e)
    return {"success": True}


@app.delete("/admin/categories/{name}", tags=["Admin"])
async def admin_delete_category(
    name: str,
    force: bool = Query(False, description="Delete even if products use it"),
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, bool]:
    """
    Two-phase delete. Without ``force`` a category still used by products
    answers 409; the client confirms and repeats with ``force=true``.
    """
    conflict: dict[str, str] = {}

    def confirm(message: str) -> bool:
        conflict["message"] = message
        return force

    try:
        deleted = await admin.delete_category(name, confirm_force=confirm)
    except RpcError as e:
        raise rpc_http_error(e)
    if not deleted:
        raise HTTPException(status_code=409, detail=conflict.get("message", "Category in use"))
    return {"success": True}


@app.post("/admin/products", tags=["Admin"])
async def admin_add_product(
    body: dict[str, Any],
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, Any]:
    try:
        product = await admin.add_product(
            name=body.get("name", ""),
            price=body.get("price"),
            category=body.get("category", ""),
            type=body.get("type", "veg"),
            image=body.get("image", ""),
            description=body.get("description", ""),
        )
    except AdminValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RpcError as e:
        raise rpc_http_error(e)
    return {"success": True, "product": product.model_dump()}


@app.delete("/admin/products/{name}", tags=["Admin"])
async def admin_delete_product(
    name: str,
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, bool]:
    try:
        await admin.delete_product(name)
    except RpcError as e:
        raise rpc_http_error(e)
    return {"success": True}


@app.patch("/admin/orders/{order_id}/status", tags=["Admin"])
async def admin_update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, Any]:
    try:
        await admin.update_order_status(order_id, body.status)
    except AdminValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RpcError as e:
        raise rpc_http_error(e)
    return {"success": True, "order_id": order_id, "status": body.status.value}


@app.get("/admin/orders/{order_id}/bill", response_class=HTMLResponse, tags=["Admin"])
async def admin_bill(
    order_id: str,
    admin: AdminController = Depends(get_logged_in_admin),
) -> HTMLResponse:
    try:
        bill = await admin.generate_bill(order_id)
    except RpcError as e:
        raise rpc_http_error(e)
    return HTMLResponse(admin.render_bill(bill))


@app.post("/admin/images", tags=["Admin"])
async def admin_upload_image(
    file: UploadFile = File(...),
    strategy: str = Form("data_url"),
    admin: AdminController = Depends(get_logged_in_admin),
) -> dict[str, Any]:
    if strategy not in STRATEGIES:
        raise HTTPException(status_code=400, detail=f"Unknown strategy. Options: {list(STRATEGIES)}")
    uploader = get_image_uploader(strategy)
    data = await file.read()
    result = await uploader.upload(data, file.filename or "image", file.content_type)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error_message)
    return result.to_dict()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("barf_malai.main:app", host=settings.api_host, port=settings.api_port)
