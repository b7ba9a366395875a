"""
TechGear Catalog Backend — Input Validator Unit Tests
=======================================================

What:  Tests for validate_product / validate_registration.
Why:   Validators are the last line before storage; a gap here means bad
       rows in the catalog or unusable accounts.
How:   Pure function tests, no database.

What we test:
    ✅ Normalization (trimmed strings, numeric price, lowercase email)
    ✅ Each required-field message
    ✅ Check order (first failure wins)
    ✅ Boundary lengths (title 200, description 2000, password 6/100, name 2/100)
"""

import pytest

from app.exceptions import ValidationError
from app.services.validation import (
    is_valid_email,
    is_valid_url,
    validate_product,
    validate_registration,
)


def product(**overrides):
    body = {
        "title": "USB-C Hub",
        "price": 49.5,
        "description": "Seven ports, 100W passthrough.",
        "image": "https://cdn.example.com/hub.jpg",
    }
    body.update(overrides)
    return body


def registration(**overrides):
    body = {"name": "Ada", "email": "ada@example.com", "password": "secret1"}
    body.update(overrides)
    return body


class TestValidateProduct:

    def test_valid_product_is_normalized(self):
        result = validate_product(product(title="  USB-C Hub  ", price="49.50"))
        assert result.title == "USB-C Hub"
        assert result.price == 49.5
        assert result.image == "https://cdn.example.com/hub.jpg"

    def test_zero_price_is_allowed(self):
        assert validate_product(product(price=0)).price == 0.0

    @pytest.mark.parametrize(
        "field, message",
        [
            ("title", "Product title is required"),
            ("price", "Product price is required"),
            ("description", "Product description is required"),
            ("image", "Product image URL is required"),
        ],
    )
    def test_missing_field(self, field, message):
        body = product()
        del body[field]
        with pytest.raises(ValidationError, match=message) as exc_info:
            validate_product(body)
        assert exc_info.value.field == field

    def test_whitespace_title_counts_as_missing(self):
        with pytest.raises(ValidationError, match="Product title is required"):
            validate_product(product(title="   "))

    @pytest.mark.parametrize("price", [-1, "-0.01", "abc", True, float("nan"), [10]])
    def test_bad_price(self, price):
        with pytest.raises(ValidationError, match="Price must be a non-negative number"):
            validate_product(product(price=price))

    @pytest.mark.parametrize("price", [10 ** 400, "1e400", "-Infinity"])
    def test_price_outside_float_range(self, price):
        with pytest.raises(ValidationError, match="Price must be a non-negative number"):
            validate_product(product(price=price))

    def test_invalid_image_url(self):
        with pytest.raises(ValidationError, match="Invalid image URL format"):
            validate_product(product(image="not a url"))

    def test_title_length_boundary(self):
        assert len(validate_product(product(title="x" * 200)).title) == 200
        with pytest.raises(ValidationError, match="Title must be at most 200 characters"):
            validate_product(product(title="x" * 201))

    def test_description_length_boundary(self):
        validate_product(product(description="d" * 2000))
        with pytest.raises(ValidationError, match="at most 2000 characters"):
            validate_product(product(description="d" * 2001))

    def test_first_failure_wins(self):
        """Missing title is reported even when every other field is bad too."""
        with pytest.raises(ValidationError, match="Product title is required"):
            validate_product({"price": -5, "image": "nope"})

    def test_non_string_title(self):
        with pytest.raises(ValidationError, match="Title must be a string"):
            validate_product(product(title=42))

    def test_body_must_be_object(self):
        with pytest.raises(ValidationError, match="Request body must be a JSON object"):
            validate_product(["title", "price"])


class TestValidateRegistration:

    def test_valid_registration_lowercases_email(self):
        result = validate_registration(registration(email="  Ada@Example.COM "))
        assert result.email == "ada@example.com"
        assert result.name == "Ada"

    def test_password_is_not_trimmed(self):
        assert validate_registration(registration(password=" pass word ")).password == " pass word "

    @pytest.mark.parametrize(
        "field, message",
        [
            ("name", "Name is required"),
            ("email", "Email is required"),
            ("password", "Password is required"),
        ],
    )
    def test_missing_field(self, field, message):
        body = registration()
        del body[field]
        with pytest.raises(ValidationError, match=message):
            validate_registration(body)

    @pytest.mark.parametrize("email", ["plainaddress", "a@b", "a b@c.com", "@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_registration(registration(email=email))

    def test_password_length_bounds(self):
        validate_registration(registration(password="x" * 6))
        validate_registration(registration(password="x" * 100))
        with pytest.raises(ValidationError, match="at least 6 characters"):
            validate_registration(registration(password="x" * 5))
        with pytest.raises(ValidationError, match="at most 100 characters"):
            validate_registration(registration(password="x" * 101))

    def test_name_length_bounds(self):
        with pytest.raises(ValidationError, match="Name must be at least 2 characters long"):
            validate_registration(registration(name="A"))
        with pytest.raises(ValidationError, match="Name must be at most 100 characters long"):
            validate_registration(registration(name="A" * 101))

    def test_email_checked_before_password_length(self):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_registration(registration(email="bad", password="123"))


class TestHelpers:

    def test_is_valid_url(self):
        assert is_valid_url("https://example.com/a.png")
        assert not is_valid_url("example")

    def test_is_valid_email(self):
        assert is_valid_email("dev@techgear.io")
        assert not is_valid_email("dev@techgear")
