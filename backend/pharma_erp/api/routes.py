"""
Service-level REST routes.

Endpoints:
  GET  /api/health
  GET  /api/settings
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from pharma_erp.core.config import settings
from pharma_erp.core.database import get_session
from pharma_erp.models.inventory import ProcessedInventoryItem
from pharma_erp.schemas.responses import HealthResponse, SettingsRead
from pharma_erp.services.documents import DOCUMENT_KINDS

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(select(ProcessedInventoryItem).limit(1))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status)


@router.get("/settings", response_model=SettingsRead)
def get_settings():
    # never echo credentials embedded in the URL
    db_url = settings.DATABASE_URL.split("@")[-1]
    return SettingsRead(
        db_url=db_url,
        transaction_max_attempts=settings.TRANSACTION_MAX_ATTEMPTS,
        db_timeout_seconds=settings.DB_TIMEOUT_SECONDS,
        currency_symbol=settings.CURRENCY_SYMBOL,
        document_kinds=list(DOCUMENT_KINDS),
    )
