from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import connect_db, close_db, get_db

# ENV
from config.env import (
    ENV,
    LOG_LEVEL,
    CORS_ALLOWED_ORIGINS,
    DISCOUNT_SWEEP_ENABLED,
    validate_production_env,
)

# ROUTES
from routes.products import router as products_router
from routes.admin import router as admin_router
from routes.seller import router as seller_router
from routes.webhooks import router as webhook_router

# WORKERS
from utils.indexes import ensure_indexes
from workers.discount_expiry_worker import discount_expiry_worker

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)
logger.info("ENV: %s", ENV)

app = FastAPI(
    title="Rental Marketplace API",
    version="1.0.0",
    docs_url=None if ENV == "production" else "/docs",
    redoc_url=None if ENV == "production" else "/redoc",
    openapi_url=None if ENV == "production" else "/openapi.json",
)

# -----------------------------
# CORS
# -----------------------------

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ERROR SHAPE
# -----------------------------

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"success": False, "message": "Validation error", "errors": errors}),
    )

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(products_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(seller_router, prefix="/api")
app.include_router(webhook_router, prefix="/api")

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get("/api/health")
async def health():

    return {"status": "ok"}

@app.get("/api/health/db")
async def health_db(db=Depends(get_db)):
    await db.command("ping")
    return {"status": "mongodb connected"}

# -----------------------------
# STARTUP / SHUTDOWN
# -----------------------------

@app.on_event("startup")
async def startup():
    validate_production_env()
    db = connect_db(app)
    await ensure_indexes(db)

    app.state.workers = []
    if DISCOUNT_SWEEP_ENABLED:
        app.state.workers.append(asyncio.create_task(discount_expiry_worker(db)))


@app.on_event("shutdown")
async def shutdown():
    workers = getattr(app.state, "workers", [])
    for task in workers:
        task.cancel()
    # let cancelled workers unwind before the client goes away
    await asyncio.gather(*workers, return_exceptions=True)
    app.state.workers = []
    close_db(app)
