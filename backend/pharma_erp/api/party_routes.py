"""
Customer and supplier registries.

Endpoints (same shape under /api/customers and /api/suppliers):
  GET    /            – list, optional ?search= over name/phone/email/gst
  POST   /            – create
  GET    /{id}        – fetch one
  PUT    /{id}        – replace contact fields
  DELETE /{id}        – delete (documents keep their snapshot)
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy import or_
from sqlmodel import Session, col, func, select

from pharma_erp.core.database import get_session
from pharma_erp.models.party import Customer, PartyBase, Supplier
from pharma_erp.schemas.requests import PartyIn
from pharma_erp.schemas.responses import PartyRead


def _party_router(model: type[PartyBase], prefix: str, label: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.rsplit("/", 1)[-1]])

    def _get_or_404(session: Session, party_id: str):
        party = session.get(model, party_id)
        if not party:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return party

    @router.get("", response_model=list[PartyRead])
    def list_parties(
        search: Optional[str] = Query(default=None),
        session: Session = Depends(get_session),
    ):
        stmt = select(model)
        if search:
            q = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(col(model.name)).contains(q, autoescape=True),
                    func.lower(func.coalesce(model.phone, "")).contains(q, autoescape=True),
                    func.lower(func.coalesce(model.email, "")).contains(q, autoescape=True),
                    func.lower(func.coalesce(model.gst, "")).contains(q, autoescape=True),
                )
            )
        return session.exec(stmt.order_by(model.name)).all()

    @router.post("", response_model=PartyRead, status_code=201)
    def create_party(body: PartyIn, session: Session = Depends(get_session)):
        party = model(**body.model_dump())
        session.add(party)
        session.commit()
        session.refresh(party)
        logger.info(f"{label} '{party.name}' created ({party.id})")
        return party

    @router.get("/{party_id}", response_model=PartyRead)
    def get_party(party_id: str, session: Session = Depends(get_session)):
        return _get_or_404(session, party_id)

    @router.put("/{party_id}", response_model=PartyRead)
    def update_party(party_id: str, body: PartyIn, session: Session = Depends(get_session)):
        party = _get_or_404(session, party_id)
        for key, value in body.model_dump().items():
            setattr(party, key, value)
        party.updated_at = datetime.utcnow()
        session.add(party)
        session.commit()
        session.refresh(party)
        logger.info(f"{label} '{party.name}' updated ({party.id})")
        return party

    @router.delete("/{party_id}")
    def delete_party(party_id: str, session: Session = Depends(get_session)) -> dict:
        party = _get_or_404(session, party_id)
        session.delete(party)
        session.commit()
        logger.info(f"{label} '{party.name}' deleted ({party_id})")
        return {"status": "deleted", "id": party_id}

    return router


customer_router = _party_router(Customer, "/api/customers", "Customer")
supplier_router = _party_router(Supplier, "/api/suppliers", "Supplier")
