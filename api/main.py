"""
Sales Order Platform API - Main Application.

FastAPI application with CORS, JSON error envelopes and the sales/auth routers.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from config import get_settings
from domain.errors import NotFoundError, ValidationError as DomainValidationError
from services.sale_service import SaleNotFoundError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Sales Order Platform API",
    description="REST API for managing sales, discounts and cancellations",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error handlers
# ============================================================================

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    message = "; ".join(str(e.get("msg", "")) for e in errors) or "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message, "errors": errors},
    )


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request: Request, exc: DomainValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": exc.message, "field": exc.field, "kind": exc.kind.value},
    )


@app.exception_handler(NotFoundError)
async def item_not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"success": False, "message": exc.message, "kind": exc.kind},
    )


@app.exception_handler(SaleNotFoundError)
async def sale_not_found_handler(request: Request, exc: SaleNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"success": False, "message": str(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "sales-order-platform-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Sales Order Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import auth, sales

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
