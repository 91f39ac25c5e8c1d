import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import config
import database
from auth_routes import router as auth_router
from errors import register_error_handlers
from logging_config import configure_logging, get_logger
from order_routes import router as order_router
from product_routes import router as product_router

configure_logging()
logger = get_logger(__name__)

# App init
app = FastAPI(title="ShopLite API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return response


register_error_handlers(app)

app.include_router(product_router)
app.include_router(order_router)
app.include_router(auth_router)


# Routes
@app.get("/")
def root():
    return {
        "message": "ShopLite API is running!",
        "version": app.version,
        "endpoints": {
            "products": "/api/products",
            "auth": "/api/auth",
            "orders": "/api/orders",
        },
    }


@app.get("/api/health")
def health():
    status = "disconnected"
    if database.db is not None:
        try:
            database.db.command("ping")
            status = "connected"
        except Exception as e:
            logger.warning("database_ping_failed", error=str(e)[:80])
            status = "error"
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.APP_ENV,
        "database": status,
    }


@app.on_event("startup")
def prepare_database():
    if database.db is None:
        logger.warning("database_not_configured")
        return
    database.ensure_indexes(database.db)


if __name__ == "__main__":
    import uvicorn

    logger.info("server_starting", port=config.PORT, environment=config.APP_ENV)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
