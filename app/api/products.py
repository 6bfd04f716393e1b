from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from typing import List, Optional
import logging

from app.schemas.product import ProductPayload, ProductResponse, DeleteResponse
from app.schemas.inventory_log import InventoryLogResponse
from app.schemas.csv_import import ImportSummary, ImportJobResponse, ImportJobStatus
from app.services.exceptions import (
    InventoryError,
    ValidationError,
    NotFoundError,
    ConflictError,
    ImportReadError,
)
from app.services.product_service import ProductService, parse_product_id
from app.services.inventory_log_service import InventoryLogService
from app.services.import_service import ImportService
from app.services.export_service import ExportService
from app.tasks.celery_app import celery_app
from app.tasks.import_tasks import import_products_csv
from app.utils.storage import StorageGateway, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def _http_error(e: InventoryError, failure_message: str) -> HTTPException:
    """Map a service error to an HTTP response; storage details are only logged."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (ValidationError, ConflictError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.error(f"{failure_message}: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_message)


def _read_upload(file: Optional[UploadFile]) -> str:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSV file is required")
    try:
        return file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportReadError(f"CSV is not valid UTF-8: {e}") from e
    finally:
        file.file.close()


@router.get(
    "/",
    response_model=List[ProductResponse],
    summary="List products",
    description="Get all products, newest first, optionally filtered by category."
)
def list_products(
    category: Optional[str] = Query(None, description='Exact category; "All" disables the filter'),
    storage: StorageGateway = Depends(get_storage)
):
    """Get all products."""
    try:
        return ProductService(storage).list_products(category)
    except InventoryError as e:
        raise _http_error(e, "Failed to fetch products")


@router.get(
    "/search",
    response_model=List[ProductResponse],
    summary="Search products by name",
    description="Case-insensitive substring match on the product name."
)
def search_products(
    name: str = Query("", description="Name fragment"),
    storage: StorageGateway = Depends(get_storage)
):
    try:
        return ProductService(storage).search_products(name)
    except InventoryError as e:
        raise _http_error(e, "Failed to search products")


@router.get(
    "/export",
    summary="Export products as CSV",
    response_class=Response,
)
def export_products(storage: StorageGateway = Depends(get_storage)):
    """
    Download every product as CSV.

    Text fields are quoted as JSON string literals.
    """
    try:
        content = ExportService(storage).export_csv()
    except InventoryError as e:
        raise _http_error(e, "Failed to export CSV")

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="products_export.csv"'},
    )


@router.post(
    "/import",
    response_model=ImportSummary,
    summary="Import products from CSV",
    description="""
    Upload a CSV file with the columns name, unit, category, brand, stock, status, image.

    - Rows missing name, unit, category or brand are skipped
    - Rows whose name already exists (case-insensitive) are reported as duplicates
    - Everything else is added
    """
)
def import_products(
    file: Optional[UploadFile] = File(None),
    storage: StorageGateway = Depends(get_storage)
):
    try:
        content = _read_upload(file)
        return ImportService(storage).import_csv(content)
    except InventoryError as e:
        raise _http_error(e, "Failed to import CSV")


@router.post(
    "/import/async",
    response_model=ImportJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a CSV import",
    description="Same as /import, but the rows are processed by a background Celery worker."
)
def import_products_async(file: Optional[UploadFile] = File(None)):
    try:
        content = _read_upload(file)
    except InventoryError as e:
        raise _http_error(e, "Failed to import CSV")

    task = import_products_csv.delay(content)
    logger.info(f"Queued CSV import task {task.id}")
    return ImportJobResponse(task_id=task.id, status="queued")


@router.get(
    "/import/jobs/{task_id}",
    response_model=ImportJobStatus,
    summary="Get background import status"
)
def get_import_job(task_id: str):
    """Return the Celery state of an import task and its summary once finished."""
    result = celery_app.AsyncResult(task_id)
    job = ImportJobStatus(task_id=task_id, status=result.state)

    if result.successful():
        job.result = ImportSummary.model_validate(result.result)
    elif result.failed():
        job.error = "Failed to import CSV"

    return job


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product"
)
def create_product(
    payload: ProductPayload,
    storage: StorageGateway = Depends(get_storage)
):
    """
    Create a new product.

    - **name**, **unit**, **category**, **brand**, **status**: required, non-empty
    - **stock**: required, whole number >= 0
    - **image**: optional
    """
    try:
        return ProductService(storage).create_product(payload.model_dump())
    except InventoryError as e:
        raise _http_error(e, "Failed to create product")


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Results are cached in Redis."
)
def get_product(
    product_id: str,
    storage: StorageGateway = Depends(get_storage)
):
    try:
        return ProductService(storage).get_product_cached(product_id)
    except InventoryError as e:
        raise _http_error(e, "Failed to fetch product")


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Replace all fields of a product. Stock changes are written to its history."
)
def update_product(
    product_id: str,
    payload: ProductPayload,
    storage: StorageGateway = Depends(get_storage)
):
    try:
        return ProductService(storage).update_product(product_id, payload.model_dump())
    except InventoryError as e:
        raise _http_error(e, "Failed to update product")


@router.delete(
    "/{product_id}",
    response_model=DeleteResponse,
    summary="Delete a product",
    description="Delete a product and its stock history."
)
def delete_product(
    product_id: str,
    storage: StorageGateway = Depends(get_storage)
):
    try:
        ProductService(storage).delete_product(product_id)
    except InventoryError as e:
        raise _http_error(e, "Failed to delete product")

    return DeleteResponse(success=True)


@router.get(
    "/{product_id}/history",
    response_model=List[InventoryLogResponse],
    summary="Get stock history",
    description="Stock changes for a product, most recent first."
)
def get_history(
    product_id: str,
    storage: StorageGateway = Depends(get_storage)
):
    try:
        return InventoryLogService(storage).history(parse_product_id(product_id))
    except InventoryError as e:
        raise _http_error(e, "Failed to fetch history")
