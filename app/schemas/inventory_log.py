from pydantic import BaseModel, ConfigDict
from datetime import datetime


class InventoryLogResponse(BaseModel):
    """Schema for a single stock-change entry."""
    id: int
    product_id: int
    old_stock: int
    new_stock: int
    changed_by: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
