"""
test_forms.py — Tests for storefront/forms.py

Called by: pytest
Depends on: storefront/forms.py, storefront/orchestrator.py
"""

from unittest.mock import AsyncMock, Mock

import pytest

from storefront.errors import GENERIC_MESSAGE, AppError, ValidationError
from storefront.forms import FormErrors, form_mutation, handle_error, handle_form_error


def test_handle_error_returns_message():
    assert handle_error(Exception("Stok yetersiz")) == "Stok yetersiz"
    assert handle_error(None) == GENERIC_MESSAGE


def test_handle_form_error_routes_fields():
    errors = FormErrors()
    err = ValidationError("Validation failed", ["email: bad"], field_errors={"email": "bad"})

    returned = handle_form_error(err, errors.set_field_error, errors.set_server_error)

    assert returned is err
    assert errors.fields == {"email": "bad"}
    assert errors.server == "Validation failed"
    assert errors.has_errors


def test_handle_form_error_without_field_map():
    errors = FormErrors()
    handle_form_error({"status": 500, "data": {"message": "boom"}}, errors.set_field_error, errors.set_server_error)
    assert errors.fields == {}
    assert errors.server == "boom"


def test_form_errors_clear():
    errors = FormErrors()
    errors.set_server_error("x")
    errors.clear()
    assert not errors.has_errors


@pytest.mark.asyncio
async def test_form_mutation_sets_and_clears_errors(orchestrator):
    errors = FormErrors()
    fn = AsyncMock(side_effect=[AppError("Zaten var", status=409, details={"field": "email"}), {"ok": True}])
    on_success = Mock()
    mutation = form_mutation(
        orchestrator,
        fn,
        set_field_error=errors.set_field_error,
        set_server_error=errors.set_server_error,
        clear_errors=errors.clear,
        on_success=on_success,
    )

    assert await mutation.mutate({"email": "ada@example.com"}) is None
    assert errors.fields == {"email": "Zaten var"}
    assert errors.server is None

    await mutation.mutate_async({"email": "new@example.com"})
    assert not errors.has_errors
    on_success.assert_called_once_with({"ok": True}, {"email": "new@example.com"})
