"""
Pharma ERP – FastAPI application entry point.

Run with:
    uvicorn pharma_erp.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from pharma_erp.api.routes import router
from pharma_erp.api.party_routes import customer_router, supplier_router
from pharma_erp.api.inventory_routes import inventory_router
from pharma_erp.api.sales_routes import sales_routers
from pharma_erp.core.config import settings
from pharma_erp.core.database import create_db_and_tables
from pharma_erp.core.errors import ErpError
from pharma_erp.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting Pharma ERP backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("Pharma ERP backend shut down")


app = FastAPI(
    title="Pharma ERP API",
    description="Inventory, parties and sales documents with transactional stock deduction",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ErpError)
async def erp_error_handler(request: Request, exc: ErpError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    body = {"detail": exc.message, "error": type(exc).__name__}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


app.include_router(router)
app.include_router(customer_router)
app.include_router(supplier_router)
app.include_router(inventory_router)
for sales_router in sales_routers:
    app.include_router(sales_router)


@app.get("/")
def root():
    return {"message": "Pharma ERP API", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pharma_erp.main:app", host=settings.API_HOST, port=settings.API_PORT)
