"""
test_validation.py — Tests for storefront/schemas/validation.py

Covers the schema validator: per-field errors, defaults, purity of the
payload, field-keyed errors from validate_or_raise, and alias-aware dumps.

Called by: pytest
Depends on: storefront/schemas/validation.py, storefront/schemas/*
"""

import copy

import pytest

from storefront.errors import VALIDATION_ERROR, ErrorKind, ValidationError
from storefront.schemas.auth import LoginRequest, SignupRequest
from storefront.schemas.cart import CartItem, CartResponse, UpdateCartItemRequest
from storefront.schemas.catalog import Category, ReviewCreate
from storefront.schemas.validation import dump, validate, validate_or_raise


def test_empty_object_reports_each_missing_field():
    """{} against CartItem → one error per required field, not one generic failure."""
    result = validate(CartItem, {})
    assert result.is_valid is False
    assert result.data is None
    assert len(result.errors) == 2
    assert any(e.startswith("id:") for e in result.errors)
    assert any(e.startswith("variants:") for e in result.errors)


def test_defaults_are_populated(cart_item):
    payload = cart_item(1)
    del payload["quantity"]
    del payload["unit_price"]
    del payload["variants"]["price"]

    result = validate(CartItem, payload)

    assert result.is_valid is True
    assert result.errors == []
    assert result.data.quantity == 1
    assert result.data.unit_price == 0
    assert result.data.variants.price == 0


def test_validation_does_not_mutate_payload(cart_item, cart_payload):
    payload = cart_payload(cart_item(1, 2, 10.0), {"id": "broken"})
    snapshot = copy.deepcopy(payload)

    first = validate(CartResponse, payload)
    second = validate(CartResponse, payload)

    assert payload == snapshot
    assert first.is_valid is second.is_valid is False
    assert first.errors == second.errors


def test_negative_price_rejected(cart_item):
    result = validate(CartItem, cart_item(1, 1, -5))
    assert result.is_valid is False
    assert any("unit_price" in e for e in result.errors)


def test_non_model_schema_is_accepted():
    result = validate(list[Category], [{"id": "c1", "name": "Shoes", "slug": "shoes"}])
    assert result.is_valid is True
    assert result.data[0].slug == "shoes"


def test_custom_validator_message_has_no_prefix():
    result = validate(UpdateCartItemRequest, {"quantity": 0})
    assert result.is_valid is False
    assert result.errors[0].startswith("quantity:")

    review = validate(ReviewCreate, {"rating": 4, "comment": "  short  "})
    assert review.errors == ["comment: Yorum en az 10 karakter olmalıdır"]


class TestValidateOrRaise:
    def test_returns_coerced_model(self):
        login = validate_or_raise(LoginRequest, {"email": " Ada@Example.com ", "password": "secret1"})
        assert login.email == "ada@example.com"

    def test_raises_validation_error_with_field_map(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_or_raise(
                LoginRequest,
                {"email": "not-an-email", "password": "123"},
                {"endpoint": "/auth/login", "method": "POST"},
                "Request validation failed",
                request_id="req-1",
            )
        err = exc_info.value
        assert err.kind is ErrorKind.VALIDATION
        assert err.code == VALIDATION_ERROR
        assert err.request_id == "req-1"
        assert err.details["fieldErrors"] == {
            "email": "Geçerli bir e-posta adresi girin",
            "password": "Şifre en az 6 karakter olmalı",
        }
        assert err.details["context"]["endpoint"] == "/auth/login"
        assert len(err.errors) == 2

    def test_password_mismatch_reported_on_confirm_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_or_raise(
                SignupRequest,
                {"name": "Ada", "email": "ada@example.com", "password": "Secret1", "confirmPassword": "Secret2"},
            )
        assert exc_info.value.details["fieldErrors"] == {"confirmPassword": "Şifreler eşleşmiyor"}


def test_dump_uses_aliases():
    signup = SignupRequest(name="Ada", email="ada@example.com", password="Secret1", confirmPassword="Secret1")
    data = dump(signup)
    assert data["confirmPassword"] == "Secret1"
    assert "confirm_password" not in data


def test_dump_passes_plain_values_through():
    assert dump({"a": 1}) == {"a": 1}
    assert dump(None) is None
    assert dump([UpdateCartItemRequest(quantity=2)]) == [{"quantity": 2}]


def test_validating_valid_payload_twice_gives_same_data(cart_item):
    payload = cart_item(3, 2, 19.9)
    first = validate(CartItem, payload)
    second = validate(CartItem, payload)
    assert first.is_valid and second.is_valid
    assert first.data == second.data
