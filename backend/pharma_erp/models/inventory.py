"""SQLModel model for the processed-inventory catalog."""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from pharma_erp.models.ids import new_id


class ProcessedInventoryItem(SQLModel, table=True):
    """
    A finished/processed good that sales documents draw stock from.

    quantity is kept as decimal text (e.g. "200", "12.5"). Only the stock
    services write it, always as a version-guarded update.
    """

    __tablename__ = "processed_inventory"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True)
    unit: str = Field(default="")
    quantity: str = Field(default="0")
    last_updated: str = Field(default="")  # ISO date of last stock movement
    category: Optional[str] = None
    batch_no: Optional[str] = None
    location: Optional[str] = None
    reorder_level: Optional[float] = None
    # bumped on every stock write; guards against lost updates
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
