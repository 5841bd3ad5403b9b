"""Tests for error kinds and their HTTP rendering."""
import json
import uuid

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from inventra.models import Product, StockItem
from inventra.error_handlers import (
    AppException,
    ConflictError,
    DuplicateResourceError,
    ErrorKind,
    InactiveResourceError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    app_exception_handler,
    generic_exception_handler,
    sqlalchemy_exception_handler,
)


async def _integrity_error(session_factory, row) -> IntegrityError:
    async with session_factory() as session:
        session.add(row)
        with pytest.raises(IntegrityError) as exc_info:
            await session.commit()
    return exc_info.value


def _request(path="/api/v1/sales/checkout"):
    return Request({
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": [],
        "query_string": b"",
    })


class TestErrorKinds:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("exc,kind,status_code", [
        (ValidationError("bad"), ErrorKind.VALIDATION, 422),
        (NotFoundError("Branch", uuid.uuid4()), ErrorKind.NOT_FOUND, 404),
        (ConflictError("Product inactive: Gum"), ErrorKind.CONFLICT, 409),
        (InactiveResourceError("Branch", "b-1"), ErrorKind.CONFLICT, 409),
        (InsufficientStockError(available=1, requested=2, product_id=uuid.uuid4()), ErrorKind.INSUFFICIENT_STOCK, 409),
        (DuplicateResourceError("Product", "sku", "COLA"), ErrorKind.DUPLICATE, 409),
    ])
    def test_kind_and_status(self, exc, kind, status_code):
        """Test that every error carries its kind and status."""
        assert isinstance(exc, AppException)
        assert exc.kind == kind
        assert exc.status_code == status_code

    def test_insufficient_stock_payload(self):
        """Test the structured payload of a shortage."""
        product_id = uuid.uuid4()
        exc = InsufficientStockError(available=5, requested=10, product_id=product_id, product_label="Cola (C1)")

        assert exc.message == "Not enough stock for Cola (C1). Available: 5"
        assert exc.details == {"product_id": str(product_id), "available": 5, "requested": 10}


class TestHandlers:
    """Tests for the JSON error bodies."""

    async def test_app_exception_body(self):
        """Test the body of an application error."""
        response = await app_exception_handler(_request(), NotFoundError("Invoice", "abc"))

        assert response.status_code == 404
        assert json.loads(response.body) == {
            "error": "Invoice not found",
            "kind": "not_found",
            "details": {"resource": "Invoice", "identifier": "abc"},
            "path": "/api/v1/sales/checkout",
        }

    async def test_unique_violation_is_duplicate(self, session_factory, seed):
        """Test that a unique constraint violation maps to 409 duplicate without driver text."""
        exc = await _integrity_error(
            session_factory, Product(name="Cola again", sku=seed.cola.sku, selling_price=1)
        )
        response = await sqlalchemy_exception_handler(_request(), exc)

        assert response.status_code == 409
        assert json.loads(response.body)["kind"] == "duplicate"
        assert "products.sku" not in response.body.decode()

    async def test_check_violation_is_conflict(self, session_factory, seed):
        """Test that a check constraint violation is not reported as a duplicate."""
        exc = await _integrity_error(
            session_factory, StockItem(branch_id=seed.branch.id, product_id=seed.cola.id, quantity=-1)
        )
        response = await sqlalchemy_exception_handler(_request(), exc)

        assert response.status_code == 409
        assert json.loads(response.body)["kind"] == "conflict"
        assert "quantity" not in response.body.decode()

    @pytest.mark.parametrize("sqlstate,kind", [
        ("23505", "duplicate"),
        ("23503", "conflict"),
        ("23514", "conflict"),
        ("23502", "conflict"),
    ])
    async def test_postgres_integrity_errors(self, sqlstate, kind):
        """Test classification by SQLSTATE for the PostgreSQL driver."""
        orig = Exception("violates constraint")
        orig.sqlstate = sqlstate
        exc = IntegrityError("INSERT INTO stock_txns", {}, orig)
        response = await sqlalchemy_exception_handler(_request(), exc)

        assert response.status_code == 409
        assert json.loads(response.body)["kind"] == kind

    async def test_database_error_is_opaque(self):
        """Test that other store failures are internal and leak nothing."""
        exc = OperationalError("SELECT secret_column", {}, Exception("connection refused to db-host"))
        response = await sqlalchemy_exception_handler(_request(), exc)

        assert response.status_code == 500
        assert json.loads(response.body)["kind"] == "internal"
        assert "db-host" not in response.body.decode()
        assert "secret_column" not in response.body.decode()

    async def test_unexpected_error_is_opaque(self):
        """Test the generic handler."""
        response = await generic_exception_handler(_request(), RuntimeError("stack details"))

        assert response.status_code == 500
        assert json.loads(response.body)["kind"] == "internal"
        assert "stack details" not in response.body.decode()
