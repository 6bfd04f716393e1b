from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship, backref

from app.database import Base
from app.models.product import utcnow


class InventoryLog(Base):
    """
    Immutable record of a stock change on a product.

    Attributes:
        id: Unique identifier for the entry
        product_id: Product whose stock changed
        old_stock: Stock before the update
        new_stock: Stock after the update
        changed_by: Actor who made the change
        timestamp: When the change was recorded
    """
    __tablename__ = "inventory_logs"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        "productId",
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_stock = Column("oldStock", Integer, nullable=False)
    new_stock = Column("newStock", Integer, nullable=False)
    changed_by = Column("changedBy", String(255), nullable=False, default="admin")
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Entries go away with their product
    product = relationship(
        "Product",
        backref=backref("inventory_logs", passive_deletes=True),
    )

    def __repr__(self):
        return (
            f"<InventoryLog(id={self.id}, product_id={self.product_id}, "
            f"{self.old_stock}->{self.new_stock})>"
        )
