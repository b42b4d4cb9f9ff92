"""
Party/item snapshot resolution.

A sales document keeps its own copy of the party's contact fields and each
item's name and unit, captured at creation. Lookups are best-effort: an id
that no longer resolves gives empty strings instead of blocking the save.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace

from sqlmodel import Session, select

from pharma_erp.models.inventory import ProcessedInventoryItem
from pharma_erp.models.party import PARTY_MODELS
from pharma_erp.services.line_items import SaleLine


@dataclass(frozen=True)
class PartySnapshot:
    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    gst: str = ""

    def as_columns(self) -> dict[str, str]:
        return {
            "party_name": self.name,
            "party_address": self.address,
            "party_phone": self.phone,
            "party_email": self.email,
            "party_gst": self.gst,
        }


@dataclass(frozen=True)
class ItemOption:
    id: str
    name: str
    unit: str


@dataclass
class Lookups:
    """The option lists a document form picks from."""

    parties: dict[str, PartySnapshot] = field(default_factory=dict)
    items: dict[str, ItemOption] = field(default_factory=dict)


def _text(value) -> str:
    return (value or "").strip() if isinstance(value, str) else ""


def load_lookups(session: Session, party_type: str) -> Lookups:
    lookups = Lookups()
    model = PARTY_MODELS.get(party_type)
    if model is not None:
        for p in session.exec(select(model)).all():
            lookups.parties[p.id] = PartySnapshot(
                name=_text(p.name),
                address=_text(p.address),
                phone=_text(p.phone),
                email=_text(p.email),
                gst=_text(p.gst),
            )
    for it in session.exec(select(ProcessedInventoryItem)).all():
        lookups.items[it.id] = ItemOption(id=it.id, name=_text(it.name), unit=_text(it.unit))
    return lookups


def party_snapshot(lookups: Lookups, party_id: str) -> PartySnapshot:
    return lookups.parties.get(party_id) or PartySnapshot()


def item_snapshot(lookups: Lookups, line: SaleLine) -> SaleLine:
    """Stamp the catalog's current name/unit onto a line, keeping typed values as fallback."""
    option = lookups.items.get(line.catalog_item_id)
    if option is None:
        return line
    return replace(line, name=option.name or line.name, unit=option.unit or line.unit)
