"""Tests for the background CSV import task."""
from unittest.mock import patch

from app.tasks.import_tasks import import_products_csv
from app.services.product_service import ProductService


def test_import_task_returns_summary(session_factory, storage):
    """Test the task imports rows with its own session and returns a plain dict."""
    content = (
        "name,unit,category,brand,stock,status\n"
        "Bolt,pc,Hardware,Acme,5,\n"
        "BOLT,pc,Hardware,Acme,1,\n"
        "Nut,,Hardware,Acme,2,\n"
    )

    with patch("app.tasks.import_tasks.SessionLocal", session_factory):
        result = import_products_csv(content)

    assert result["added"] == 1
    assert result["skipped"] == 1
    assert result["duplicates"] == [{"name": "BOLT", "existing_id": result["added_ids"][0]}]

    products = ProductService(storage).list_products()
    assert [p.name for p in products] == ["Bolt"]
    assert products[0].status == "In Stock"


def test_import_task_is_not_redelivered_after_worker_loss():
    """Test tasks are acknowledged on receipt so a partial import never runs twice."""
    from app.tasks.celery_app import celery_app

    assert celery_app.conf.task_acks_late is False
    assert not celery_app.conf.task_reject_on_worker_lost
