import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import carts_api
import products_api
import realtime
import views
from carts import CartService, CartStore
from catalog import CatalogStore
from database import connect
from errors import ShopError
from notifier import ProductBroadcaster
from seed import seed_sample_data
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def error_response(status_code: int, message: str, errors: Optional[list] = None) -> JSONResponse:
    content: dict = {"status": "error", "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


# ---------- Error handlers ----------

async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        errors.append(f"{location}: {err['msg']}")
    return error_response(400, "Invalid request data", errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(404, f"Route {request.url.path} not found")
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


# ---------- Application ----------

def create_app(
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
    seed: Optional[bool] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    db = database if database is not None else connect(settings)
    seed = settings.seed_sample_data if seed is None else seed

    catalog = CatalogStore(db)
    cart_store = CartStore(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Using database %s", db.name)
        catalog.ensure_indexes()
        if seed:
            try:
                seed_sample_data(catalog, cart_store)
            except PyMongoError as exc:
                logger.error("Sample data initialization failed: %s", exc)
        yield

    app = FastAPI(title="Ecommerce API", lifespan=lifespan)

    app.state.settings = settings
    app.state.db = db
    app.state.catalog = catalog
    app.state.cart_store = cart_store
    app.state.cart_service = CartService(cart_store, catalog)
    app.state.broadcaster = ProductBroadcaster(catalog)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(products_api.router, prefix="/api/products", tags=["Products"])
    app.include_router(carts_api.router, prefix="/api/carts", tags=["Carts"])
    app.include_router(realtime.router, tags=["Realtime"])
    app.include_router(views.router, tags=["Views"])

    @app.get("/api/status")
    def status() -> Any:
        try:
            db.command("ping")
            database_state = "connected"
        except Exception as exc:
            logger.warning("Database ping failed: %s", exc)
            database_state = "disconnected"
        products_count = catalog.count()
        carts_count = cart_store.count()
        return {
            "status": "success",
            "payload": {
                "server": "running",
                "database": database_state,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "productsCount": products_count,
                "cartsCount": carts_count,
                "endpoints": {
                    "products": "/api/products",
                    "carts": "/api/carts",
                    "productsView": "/products",
                    "productDetail": "/products/{pid}",
                    "cartView": "/carts/{cid}",
                    "realtime": "/realtimeproducts",
                    "realtimeSocket": "/ws/products",
                    "status": "/api/status",
                },
            },
            "message": f"Server running with {products_count} products and {carts_count} carts",
        }

    return app


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=settings.port)
