from sqlalchemy import select
from typing import List
import logging

from app.models.inventory_log import InventoryLog
from app.models.product import utcnow
from app.utils.storage import StorageGateway

logger = logging.getLogger(__name__)


class InventoryLogService:
    """
    Append-only audit trail of stock changes.

    Entries are written only as a side effect of product updates and are
    removed only together with their product.
    """

    def __init__(self, storage: StorageGateway):
        self.storage = storage

    def append(self, product_id: int, old_stock: int, new_stock: int, actor: str) -> InventoryLog:
        """
        Record a stock change.

        The caller guarantees that old_stock != new_stock.

        Returns:
            The stored entry
        """
        entry = InventoryLog(
            product_id=product_id,
            old_stock=old_stock,
            new_stock=new_stock,
            changed_by=actor,
            timestamp=utcnow(),
        )
        self.storage.add(entry)
        logger.info(
            f"Stock for product #{product_id} changed {old_stock} -> {new_stock} by {actor}"
        )
        return entry

    def history(self, product_id: int) -> List[InventoryLog]:
        """Return all entries for a product, most recent first."""
        stmt = (
            select(InventoryLog)
            .where(InventoryLog.product_id == product_id)
            .order_by(InventoryLog.timestamp.desc(), InventoryLog.id.desc())
        )
        return self.storage.query_all(stmt)
