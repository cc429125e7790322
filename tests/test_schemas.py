import pytest
from pydantic import ValidationError

from schemas import (
    Order,
    OrderUpdate,
    Product,
    ProductUpdate,
    User,
    UserUpdate,
    changes_from,
    format_validation_error,
    validate,
)


def test_product_defaults():
    product = validate(Product, {"name": "Boot", "price": 49.99, "category": "Shoes"})
    doc = product.to_document()
    assert doc["stock"] == 0
    assert doc["status"] == "Active"
    assert doc["images"] == []
    assert "createdAt" in doc


def test_product_rejects_negative_price_and_stock():
    with pytest.raises(ValidationError):
        validate(Product, {"name": "Boot", "price": -1, "category": "Shoes"})
    with pytest.raises(ValidationError):
        validate(Product, {"name": "Boot", "price": 1, "category": "Shoes", "stock": -3})


def test_product_rejects_unknown_status():
    with pytest.raises(ValidationError):
        validate(Product, {"name": "Boot", "price": 1, "category": "Shoes", "status": "Gone"})


def test_user_role_defaults_to_editor():
    user = validate(User, {"name": "Ann", "email": "ann@example.com", "password": "pw"})
    assert user.role == "Editor"


def test_user_requires_password():
    with pytest.raises(ValidationError) as exc:
        validate(User, {"name": "Ann", "email": "ann@example.com"})
    assert format_validation_error(exc.value).startswith("User validation failed: password")


def test_user_update_ignores_password():
    update = validate(UserUpdate, {"name": "X", "password": "new"})
    assert changes_from(update) == {"name": "X"}


def test_changes_use_stored_field_names():
    update = validate(OrderUpdate, {"items": [{"productName": "Boot", "quantity": 2, "price": 10}]})
    assert changes_from(update)["items"][0]["productName"] == "Boot"


def test_changes_skip_unsupplied_fields():
    assert changes_from(validate(ProductUpdate, {"stock": 5})) == {"stock": 5}


def test_order_total_is_kept_as_supplied():
    order = validate(Order, {
        "customer": "Ann",
        "items": [{"productName": "Boot", "quantity": 2, "price": 10}],
        "total": 5,
    })
    doc = order.to_document()
    assert doc["total"] == 5
    assert doc["status"] == "Processing"
    assert "orderDate" in doc
