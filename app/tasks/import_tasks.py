import logging

from app.tasks.celery_app import celery_app
from app.database import SessionLocal
from app.services.import_service import ImportService
from app.utils.storage import StorageGateway

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="import_products_csv")
def import_products_csv(self, content: str) -> dict:
    """
    Background task to import products from CSV text.

    Runs the same reconciliation as the synchronous import endpoint and
    stores the summary as the task result. No retries: re-running a
    partially applied import would report its own rows as duplicates.

    Args:
        content: Decoded CSV document including the header row

    Returns:
        The import summary as a dictionary
    """
    logger.info(f"Starting CSV import task {self.request.id}")

    db = SessionLocal()
    try:
        summary = ImportService(StorageGateway(db)).import_csv(content)
        logger.info(f"CSV import task {self.request.id} finished")
        return summary.model_dump()
    finally:
        db.close()
