from typing import Iterable, Mapping, Optional
import csv
import io
import math
import logging

from app.models.product import Product, utcnow
from app.schemas.csv_import import ImportSummary, DuplicateRow, SkippedRow
from app.services.exceptions import ImportReadError, StorageError
from app.services.product_service import MAX_INTEGER, ProductService
from app.utils.storage import StorageGateway

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "unit", "category", "brand", "status", "image")
REQUIRED_FIELDS = ("name", "unit", "category", "brand")
DEFAULT_STATUS = "In Stock"

MISSING_FIELDS_REASON = "Missing required fields"
INSERT_FAILED_REASON = "Failed to insert row"


def parse_import_stock(value: Optional[str]) -> int:
    """
    Lenient stock parsing for bulk imports.

    Absent, unparseable, negative, non-finite or out-of-range values
    become 0 and fractions are truncated. Rows are never rejected for
    their stock.
    """
    text = (value or "").strip() or "0"
    try:
        number = int(text)
    except ValueError:
        try:
            parsed = float(text)
        except ValueError:
            return 0
        if not math.isfinite(parsed):
            return 0
        number = int(parsed)
    if number < 0 or number > MAX_INTEGER:
        return 0
    return number


class ImportService:
    """
    CSV reconciliation engine.

    Each input row is classified as added, skipped or duplicate.
    Rows are processed one at a time in input order, so a row can be
    reported as a duplicate of a product inserted earlier in the same batch.
    """

    def __init__(self, storage: StorageGateway, products: Optional[ProductService] = None):
        self.storage = storage
        self.products = products or ProductService(storage)

    def import_csv(self, content: str) -> ImportSummary:
        """
        Import products from CSV text with a header row.

        The whole document is parsed before any row is written.

        Raises:
            ImportReadError: If the document can't be parsed
        """
        try:
            rows = list(csv.DictReader(io.StringIO(content)))
        except csv.Error as e:
            logger.error(f"Failed to parse CSV import: {e}")
            raise ImportReadError(f"Failed to parse CSV: {e}") from e

        return self.import_rows(rows)

    def import_rows(self, rows: Iterable[Mapping[str, Optional[str]]]) -> ImportSummary:
        """
        Reconcile parsed rows against the product table.

        Args:
            rows: Field mappings keyed by column name; unknown columns are ignored

        Returns:
            ImportSummary with counts, duplicate descriptors and skip reasons
        """
        summary = ImportSummary()

        for row_number, row in enumerate(rows, start=1):
            fields = {field: (row.get(field) or "").strip() for field in TEXT_FIELDS}
            fields["stock"] = parse_import_stock(row.get("stock"))

            if not all(fields[field] for field in REQUIRED_FIELDS):
                self._skip(summary, row_number, fields["name"], MISSING_FIELDS_REASON)
                continue

            if not fields["status"]:
                fields["status"] = DEFAULT_STATUS

            try:
                existing = self.products.find_by_name(fields["name"])
                if existing:
                    logger.info(
                        f"Import row {row_number}: '{fields['name']}' duplicates product #{existing.id}"
                    )
                    summary.duplicates.append(DuplicateRow(name=fields["name"], existing_id=existing.id))
                    continue

                now = utcnow()
                result = self.storage.add(Product(**fields, created_at=now, updated_at=now))
            except StorageError:
                # The gateway has already rolled back and logged the failure
                self._skip(summary, row_number, fields["name"], INSERT_FAILED_REASON)
                continue

            summary.added_ids.append(result.inserted_id)

        summary.added = len(summary.added_ids)
        summary.skipped = len(summary.skipped_rows)

        logger.info(
            f"CSV import finished: {summary.added} added, {summary.skipped} skipped, "
            f"{len(summary.duplicates)} duplicates"
        )
        return summary

    def _skip(self, summary: ImportSummary, row_number: int, name: str, reason: str) -> None:
        logger.warning(f"Import row {row_number} skipped: {reason}")
        summary.skipped_rows.append(SkippedRow(row=row_number, name=name or None, reason=reason))
