"""Tests for stock history recorded by ProductService and InventoryLogService."""
import pytest

from app.services.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.inventory_log_service import InventoryLogService
from app.services.product_service import ProductService


def test_stock_changes_recorded_newest_first(storage, product_data):
    """Test N stock-changing updates produce N entries, most recent first."""
    service = ProductService(storage)
    product = service.create_product(product_data)

    for stock in (11, 12, 5):
        product_data["stock"] = stock
        service.update_product(product.id, product_data)

    history = InventoryLogService(storage).history(product.id)

    assert [(e.old_stock, e.new_stock) for e in history] == [(12, 5), (11, 12), (10, 11)]
    assert [e.id for e in history] == sorted((e.id for e in history), reverse=True)
    timestamps = [e.timestamp for e in history]
    assert timestamps == sorted(timestamps, reverse=True)


def test_unchanged_stock_writes_no_entry(storage, product_data):
    service = ProductService(storage)
    product = service.create_product(product_data)

    product_data["stock"] = "10"
    product_data["brand"] = "Other"
    updated = service.update_product(product.id, product_data)

    assert updated.brand == "Other"
    assert InventoryLogService(storage).history(product.id) == []


def test_update_refreshes_updated_at_only(storage, product_data):
    service = ProductService(storage)
    product = service.create_product(product_data)
    created_at = product.created_at
    assert product.created_at == product.updated_at

    product_data["status"] = "Reserved"
    updated = service.update_product(product.id, product_data)

    assert updated.created_at == created_at
    assert updated.updated_at >= created_at


def test_actor_is_recorded(storage, product_data):
    service = ProductService(storage)
    product = service.create_product(product_data)

    product_data["stock"] = 0
    service.update_product(product.id, product_data, actor="jdoe")

    (entry,) = InventoryLogService(storage).history(product.id)
    assert entry.changed_by == "jdoe"


def test_history_empty_for_unknown_product(storage):
    assert InventoryLogService(storage).history(12345) == []


def test_delete_cascades_history(storage, product_data):
    """Test deleting a product removes its entries but leaves others alone."""
    service = ProductService(storage)
    doomed = service.create_product(product_data)
    product_data["name"] = "Keeper"
    keeper = service.create_product(product_data)

    for product in (doomed, keeper):
        product_data["name"] = product.name
        product_data["stock"] = 99
        service.update_product(product.id, product_data)

    doomed_id, keeper_id = doomed.id, keeper.id
    assert service.delete_product(doomed_id) is True

    log = InventoryLogService(storage)
    assert log.history(doomed_id) == []
    assert len(log.history(keeper_id)) == 1
    with pytest.raises(NotFoundError):
        service.get_product(doomed_id)


def test_update_validation_order(storage, product_data):
    """Test id is validated before fields, and fields before existence."""
    service = ProductService(storage)
    del product_data["name"]

    with pytest.raises(ValidationError, match="Invalid id"):
        service.update_product(-3, product_data)
    with pytest.raises(ValidationError, match="name is required"):
        service.update_product(999, product_data)


def test_update_conflict_leaves_product_untouched(storage, product_data):
    service = ProductService(storage)
    service.create_product(product_data)
    product_data["name"] = "Gadget"
    gadget = service.create_product(product_data)

    product_data.update(name="widget", stock=1)
    with pytest.raises(ConflictError):
        service.update_product(gadget.id, product_data)

    assert service.get_product(gadget.id).name == "Gadget"
    assert InventoryLogService(storage).history(gadget.id) == []
