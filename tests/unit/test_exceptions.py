"""
Tests for core.exceptions module.
"""
import pytest

from core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StoreError,
    StorefrontError,
    ValidationError,
)


class TestStorefrontError:
    """Tests for base StorefrontError exception."""

    def test_message_only(self):
        """Error with message only."""
        error = StorefrontError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details is None
        assert error.status_code == 500

    def test_message_with_details(self):
        """Error with message and details."""
        error = StorefrontError("Failed to fetch", "Connection timeout")
        assert str(error) == "Failed to fetch: Connection timeout"


class TestStoreError:
    """Tests for StoreError exception."""

    def test_carries_store_context(self):
        error = StoreError("relation does not exist", code="42P01", table="products_on_sale")
        assert isinstance(error, StorefrontError)
        assert error.status_code == 500
        assert error.code == "42P01"
        assert error.table == "products_on_sale"
        assert error.message == "relation does not exist"


class TestStatusCodes:
    """Each error kind maps to its HTTP status."""

    def test_not_found(self):
        assert NotFoundError().status_code == 404
        assert NotFoundError().message == "Not found"
        assert NotFoundError("Brand not found").message == "Brand not found"

    def test_authentication(self):
        error = AuthenticationError()
        assert error.status_code == 401
        assert error.message == "Unauthorized"

    def test_authorization_defaults_to_forbidden(self):
        error = AuthorizationError()
        assert error.status_code == 403
        assert error.message == "Forbidden"

    def test_authorization_status_override(self):
        error = AuthorizationError("Unauthorized", status_code=401)
        assert error.status_code == 401


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_basic_error(self):
        error = ValidationError("name", "Name required")
        assert error.field == "name"
        assert error.message == "Name required"
        assert error.value is None
        assert str(error) == "name: Name required"
        assert error.status_code == 400

    def test_error_with_value(self):
        error = ValidationError("price", "Must be a number", "abc")
        assert "abc" in str(error)

    def test_not_a_storefront_error(self):
        """Validation failures are rendered separately (they carry a field)."""
        assert not isinstance(ValidationError("a", "b"), StorefrontError)
        with pytest.raises(ValidationError):
            raise ValidationError("body", "Invalid JSON")
