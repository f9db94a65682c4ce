# backend/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db
from services.errors import (
    CheckoutError, InvalidStatusError, OrderDeleteIncomplete, OrderNotFoundError,
    PersistenceError, StatusTransitionError, StorefrontError,
)

# Router imports
from routes.orders import router as orders_router
from routes.cart import router as cart_router
from routes.shop import router as shop_router
from routes.admin import router as admin_router
from routes.stats import router as stats_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialization
init_db()

app = FastAPI(title="Storefront Orders API", version="1.0.0")

# Product images
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# CORS Configuration
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    OrderNotFoundError: 404,
    InvalidStatusError: 400,
    StatusTransitionError: 409,
    OrderDeleteIncomplete: 409,
    PersistenceError: 500,
}

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map domain errors to the {ok: false, error} envelope the storefront expects."""
    if isinstance(exc, CheckoutError):
        status_code = 400
    else:
        status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": str(exc), "errorType": type(exc).__name__},
    )

# Router registration
app.include_router(orders_router)
app.include_router(cart_router)
app.include_router(shop_router)
app.include_router(admin_router)
app.include_router(stats_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Storefront Orders API is running"}
