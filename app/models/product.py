from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, Index, func

from app.database import Base


def utcnow() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(timezone.utc)


class Product(Base):
    """
    Product model representing an inventory item.

    Attributes:
        id: Unique identifier for the product
        name: Product name (unique, case-insensitive)
        unit: Unit of measure (e.g. "pc", "kg")
        category: Free-form category used for filtering
        brand: Brand name
        stock: Quantity on hand (must be non-negative)
        status: Free-form availability label (e.g. "In Stock")
        image: Optional image URL or path
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated

    Column names keep the camelCase layout of existing databases.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    unit = Column(String(64), nullable=False)
    category = Column(String(255), nullable=False, index=True)
    brand = Column(String(255), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(64), nullable=False)
    image = Column(String(1024), nullable=True, default="")
    created_at = Column("createdAt", DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column("updatedAt", DateTime(timezone=True), nullable=False, default=utcnow)

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_stock_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"


# At most one product per case-insensitive name
Index("uq_products_name_lower", func.lower(Product.__table__.c.name), unique=True)
