"""Tests for the StorageGateway."""
from unittest.mock import patch

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.models.product import Product, utcnow
from app.services.exceptions import StorageError
from app.utils.storage import StorageGateway


def make_product(name="Widget", stock=1):
    now = utcnow()
    return Product(
        name=name, unit="pc", category="C", brand="B", stock=stock,
        status="In Stock", image="", created_at=now, updated_at=now,
    )


def test_add_returns_inserted_id(storage):
    first = storage.add(make_product("One"))
    second = storage.add(make_product("Two"))

    assert first.rows_affected == 1
    assert second.inserted_id == first.inserted_id + 1


def test_execute_reports_rows_affected(storage):
    storage.add(make_product("One"))
    storage.add(make_product("Two"))

    result = storage.execute(update(Product).values(stock=5))

    assert result.inserted_id is None
    assert result.rows_affected == 2
    assert {p.stock for p in storage.query_all(select(Product))} == {5}


def test_query_one_absent(storage):
    assert storage.query_one(select(Product).where(Product.id == 1)) is None


def test_unique_name_index_raises_storage_error(storage):
    """Test the case-insensitive unique index backs up the service check."""
    storage.add(make_product("Widget"))

    with pytest.raises(StorageError):
        storage.add(make_product("WIDGET"))

    # The session is usable again after the rollback
    assert len(storage.query_all(select(Product))) == 1


def test_negative_stock_rejected_by_database(storage):
    with pytest.raises(StorageError):
        storage.add(make_product(stock=-1))


def test_sqlalchemy_errors_are_translated(db_session):
    storage = StorageGateway(db_session)

    with patch.object(db_session, "scalars", side_effect=OperationalError("SELECT", {}, Exception("db down"))):
        with pytest.raises(StorageError) as exc_info:
            storage.query_all(select(Product))

    assert "db down" not in str(exc_info.value)


def test_integer_overflow_is_translated(storage):
    """Test a value the driver can't bind becomes StorageError and the session recovers."""
    with pytest.raises(StorageError):
        storage.add(make_product("Huge", stock=10**20))

    assert storage.add(make_product("Normal")).inserted_id is not None
