"""
TechGear Catalog Backend — Input Validators
=============================================

What:  Pure validation + normalization for product and registration bodies.
Why:   Invalid input must be rejected before any storage access, with one
       human-readable message that tells the client what to fix.
How:   Each validator checks fields in a fixed order and raises
       ValidationError on the first failure; on success it returns a
       normalized pydantic model (trimmed strings, numeric price, lowercase
       email).
Who:   Called by the validation stage in app.routes.deps.

Check order (first failure wins):
    Product:       title → price (presence) → price (number ≥ 0) →
                   description → image → image URL → title length →
                   description length
    Registration:  name → email → password → email syntax →
                   password length → name length
"""

import math
import re
from typing import Any, Mapping, Optional

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ValidationError
from app.schemas.product import ProductInput
from app.schemas.user import RegistrationInput

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_url_adapter = TypeAdapter(AnyUrl)


def _ensure_mapping(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError(message="Request body must be a JSON object")
    return body


def _required_text(body: Mapping[str, Any], field: str, message: str) -> str:
    """Return the trimmed string value of `field`, or raise `message`."""
    value = body.get(field)
    if value is None:
        raise ValidationError(message=message, field=field)
    if not isinstance(value, str):
        raise ValidationError(message=f"{field.capitalize()} must be a string", field=field)
    if not value.strip():
        raise ValidationError(message=message, field=field)
    return value.strip()


def _coerce_price(value: Any) -> Optional[float]:
    """Numbers and numeric strings become floats; anything else is None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        price = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(price):
        return None
    return price


def is_valid_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def validate_product(body: Any) -> ProductInput:
    """
    Validate and normalize a product create/update body.

    Args:
        body: Decoded JSON request body.

    Returns:
        ProductInput with trimmed strings and a float price.

    Raises:
        ValidationError: On the first failing check.
    """
    body = _ensure_mapping(body)

    title = _required_text(body, "title", "Product title is required")

    raw_price = body.get("price")
    if raw_price is None or (isinstance(raw_price, str) and not raw_price.strip()):
        raise ValidationError(message="Product price is required", field="price")

    price = _coerce_price(raw_price)
    if price is None or price < 0:
        raise ValidationError(message="Price must be a non-negative number", field="price")

    description = _required_text(body, "description", "Product description is required")
    image = _required_text(body, "image", "Product image URL is required")

    if not is_valid_url(image):
        raise ValidationError(message="Invalid image URL format", field="image")

    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            message=f"Title must be at most {TITLE_MAX_LENGTH} characters",
            field="title",
        )

    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            message=f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )

    return ProductInput(title=title, price=price, description=description, image=image)


def validate_registration(body: Any) -> RegistrationInput:
    """
    Validate and normalize a registration body.

    The password is checked but never trimmed or altered; name is trimmed
    and email is trimmed + lowercased so uniqueness is case-insensitive.

    Raises:
        ValidationError: On the first failing check.
    """
    body = _ensure_mapping(body)

    name = _required_text(body, "name", "Name is required")
    email = _required_text(body, "email", "Email is required")

    password = body.get("password")
    if password is None or password == "":
        raise ValidationError(message="Password is required", field="password")
    if not isinstance(password, str):
        raise ValidationError(message="Password must be a string", field="password")

    if not is_valid_email(email):
        raise ValidationError(message="Invalid email format", field="email")

    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            field="password",
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            message=f"Password must be at most {PASSWORD_MAX_LENGTH} characters long",
            field="password",
        )

    if len(name) < NAME_MIN_LENGTH:
        raise ValidationError(
            message=f"Name must be at least {NAME_MIN_LENGTH} characters long",
            field="name",
        )
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            message=f"Name must be at most {NAME_MAX_LENGTH} characters long",
            field="name",
        )

    return RegistrationInput(name=name, email=email.lower(), password=password)
