import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stock_common.observability import init_observability, get_logger, shutdown_tracing

from stock_api import config
from stock_api.database import init_db
from stock_api.repository import PersistenceError
from stock_api.routes import upload_router, queries_router, health_router

# Bootstrap logging + tracing + service-info in one call
init_observability(config.SERVICE_NAME, config.SERVICE_VERSION, log_level=config.LOG_LEVEL)

logger = get_logger(config.SERVICE_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialized")
    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

    yield

    # Flush remaining traces before shutdown
    shutdown_tracing()


app = FastAPI(
    title="Stock Data Service",
    version=config.SERVICE_VERSION,
    lifespan=lifespan,
)

app.include_router(upload_router)
app.include_router(queries_router)
app.include_router(health_router)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Database query error", "details": str(exc)},
    )


# Initialize telemetry at module level (before requests start)
try:
    from stock_api import telemetry
    telemetry.init(app)
except Exception as e:
    logging.getLogger("telemetry").warning(f"Telemetry init skipped: {e}")
