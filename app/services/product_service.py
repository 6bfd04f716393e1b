from sqlalchemy import String, select, update, delete, func
from typing import Optional, List, Any, Mapping
import math
import logging

from app.models.product import Product, utcnow
from app.models.inventory_log import InventoryLog
from app.schemas.product import ProductResponse
from app.services.exceptions import ValidationError, NotFoundError, ConflictError
from app.services.inventory_log_service import InventoryLogService
from app.utils.cache import CacheService, cache_service
from app.utils.storage import StorageGateway

logger = logging.getLogger(__name__)

# Checked in this order; the first failure is reported
REQUIRED_FIELDS = ("name", "unit", "category", "brand", "stock", "status")

ALL_CATEGORIES = "All"

# Placeholder until requests carry an authenticated user
DEFAULT_ACTOR = "admin"

STOCK_ERROR = "stock must be a number >= 0"

# Largest value an INTEGER column holds (signed 64-bit)
MAX_INTEGER = 2**63 - 1


def parse_product_id(product_id: Any) -> int:
    """Return product_id as a positive int or raise ValidationError."""
    if isinstance(product_id, bool):
        raise ValidationError("Invalid id")
    try:
        value = int(str(product_id))
    except ValueError:
        raise ValidationError("Invalid id")
    if value <= 0 or value > MAX_INTEGER:
        raise ValidationError("Invalid id")
    return value


def parse_stock(value: Any) -> int:
    """Parse a stock value that must be a whole number between 0 and MAX_INTEGER."""
    if isinstance(value, bool):
        raise ValidationError(STOCK_ERROR)

    if isinstance(value, int):
        number = value
    else:
        number = _parse_whole_number(value)

    if number < 0 or number > MAX_INTEGER:
        raise ValidationError(STOCK_ERROR)
    return number


def _parse_whole_number(value: Any) -> int:
    # Integer strings are parsed exactly; float() would round above 2**53
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(STOCK_ERROR)
    if not math.isfinite(number) or not number.is_integer():
        raise ValidationError(STOCK_ERROR)
    return int(number)


def validate_product_fields(data: Mapping[str, Any]) -> dict:
    """
    Validate a create/update payload.

    Args:
        data: Raw field mapping (missing keys are treated as absent)

    Returns:
        Normalized field values ready to be written

    Raises:
        ValidationError: Naming the first missing or invalid field
    """
    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if value is None or value == "":
            raise ValidationError(f"{field} is required")

    return {
        "name": data["name"],
        "unit": data["unit"],
        "category": data["category"],
        "brand": data["brand"],
        "stock": parse_stock(data["stock"]),
        "status": data["status"],
        "image": data.get("image") or "",
    }


class ProductService:
    """
    Service class for Product CRUD operations.

    This service handles:
    - Listing, searching and reading products
    - Creating products with case-insensitive name uniqueness
    - Updating products and logging stock changes
    - Deleting products together with their stock history
    - Cache invalidation
    """

    CACHE_PREFIX = "product"

    def __init__(
        self,
        storage: StorageGateway,
        audit_log: Optional[InventoryLogService] = None,
        cache: Optional[CacheService] = None,
    ):
        self.storage = storage
        self.audit_log = audit_log or InventoryLogService(storage)
        self.cache = cache or cache_service

    def list_products(self, category: Optional[str] = None) -> List[Product]:
        """
        Get all products, newest first.

        Args:
            category: Exact category to filter on; None or "All" disables the filter
        """
        stmt = select(Product)
        if category and category != ALL_CATEGORIES:
            stmt = stmt.where(Product.category == category)
        return self.storage.query_all(stmt.order_by(Product.id.desc()))

    def search_products(self, name: str = "") -> List[Product]:
        """Get products whose name contains ``name`` (case-insensitive), newest first."""
        stmt = (
            select(Product)
            .where(func.lower(Product.name, type_=String).contains((name or "").lower(), autoescape=True))
            .order_by(Product.id.desc())
        )
        return self.storage.query_all(stmt)

    def find_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[Product]:
        """Case-insensitive exact name lookup, optionally ignoring one product."""
        stmt = select(Product).where(func.lower(Product.name) == func.lower(name))
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        return self.storage.query_one(stmt)

    def get_product(self, product_id: Any) -> Product:
        """
        Get a product by ID.

        Raises:
            ValidationError: If the id is not a positive integer
            NotFoundError: If no such product exists
        """
        product_id = parse_product_id(product_id)
        product = self._get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_product_cached(self, product_id: Any) -> dict:
        """
        Get product details from cache or database.
        Returns a dictionary (suitable for API response).
        """
        product_id = parse_product_id(product_id)
        cached = self.cache.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product_dict = ProductResponse.model_validate(self.get_product(product_id)).model_dump(mode="json")
        self.cache.set(self.CACHE_PREFIX, str(product_id), product_dict)
        return product_dict

    def create_product(self, data: Mapping[str, Any]) -> Product:
        """
        Create a new product.

        Args:
            data: Product fields (name, unit, category, brand, stock, status, image)

        Returns:
            The stored product, re-read after insert

        Raises:
            ValidationError: If a required field is missing or stock is invalid
            ConflictError: If the name is already taken
        """
        fields = validate_product_fields(data)

        if self.find_by_name(fields["name"]):
            raise ConflictError("Product name already exists")

        now = utcnow()
        result = self.storage.add(Product(**fields, created_at=now, updated_at=now))
        logger.info(f"Product #{result.inserted_id} '{fields['name']}' created")

        return self._get(result.inserted_id)

    def update_product(self, product_id: Any, data: Mapping[str, Any], actor: str = DEFAULT_ACTOR) -> Product:
        """
        Replace all mutable fields of a product.

        A stock change is recorded in the inventory log with the old and
        new values and the acting user.

        Returns:
            The product as stored after the update

        Raises:
            ValidationError: If the id or a field is invalid
            NotFoundError: If the product doesn't exist
            ConflictError: If another product already uses the name
        """
        product_id = parse_product_id(product_id)
        fields = validate_product_fields(data)

        existing = self._get(product_id)
        if not existing:
            raise NotFoundError("Product not found")
        old_stock = existing.stock

        if self.find_by_name(fields["name"], exclude_id=product_id):
            raise ConflictError("Product name must be unique")

        self.storage.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(**fields, updated_at=utcnow())
        )

        if fields["stock"] != old_stock:
            self.audit_log.append(product_id, old_stock, fields["stock"], actor)

        self._invalidate_cache(product_id)

        return self._get(product_id)

    def delete_product(self, product_id: Any) -> bool:
        """
        Delete a product and its stock history in one transaction.

        Raises:
            ValidationError: If the id is not a positive integer
            NotFoundError: If the product doesn't exist
        """
        product_id = parse_product_id(product_id)

        if not self._get(product_id):
            raise NotFoundError("Product not found")

        # Explicit cascade: not every engine enforces ON DELETE CASCADE
        self.storage.execute(
            delete(InventoryLog).where(InventoryLog.product_id == product_id),
            commit=False,
        )
        self.storage.execute(delete(Product).where(Product.id == product_id))
        logger.info(f"Product #{product_id} deleted")

        self._invalidate_cache(product_id)

        return True

    def _get(self, product_id: int) -> Optional[Product]:
        return self.storage.query_one(select(Product).where(Product.id == product_id))

    def _invalidate_cache(self, product_id: int) -> None:
        """Invalidate cache for a product."""
        self.cache.delete(self.CACHE_PREFIX, str(product_id))
