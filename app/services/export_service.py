from datetime import datetime
from typing import Any
import json

from sqlalchemy import select

from app.models.product import Product
from app.utils.storage import StorageGateway

EXPORT_HEADER = "id,name,unit,category,brand,stock,status,image,createdAt,updatedAt"


def quote(value: Any) -> str:
    """
    Quote a field as a JSON string literal.

    This is not RFC 4180 quoting: embedded quotes become \\" rather than "",
    so the field can be decoded with json.loads.
    """
    if value is None:
        value = ""
    elif isinstance(value, datetime):
        value = value.isoformat()
    return json.dumps(value, ensure_ascii=False)


class ExportService:
    """Serializes the product table to CSV."""

    def __init__(self, storage: StorageGateway):
        self.storage = storage

    def export_csv(self) -> str:
        """Return every product as CSV text, one newline-terminated line per product."""
        products = self.storage.query_all(select(Product).order_by(Product.id))

        lines = [EXPORT_HEADER]
        for p in products:
            lines.append(",".join([
                str(p.id),
                quote(p.name),
                quote(p.unit),
                quote(p.category),
                quote(p.brand),
                str(p.stock),
                quote(p.status),
                quote(p.image),
                quote(p.created_at),
                quote(p.updated_at),
            ]))

        return "\n".join(lines) + "\n"
