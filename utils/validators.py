# Validaciones de formularios (dirección, envío).
# Devuelven errores por campo para que la UI marque el campo exacto.

import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from models import CartItem, CartSnapshot, ShippingDetails

_NON_DIGITS = re.compile(r"\D")


class ValidationError(Exception):
    """Error de formulario con mensaje por campo."""
    status_code = 400

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = errors
        super().__init__(self.summary())

    def summary(self) -> str:
        return "Please fix the following errors: " + ", ".join(self.errors.values())


def validate_phone(phone: str) -> bool:
    """Exactamente 10 dígitos, ignorando espacios, guiones y paréntesis."""
    return len(_NON_DIGITS.sub("", phone or "")) == 10


def address_errors(data: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not str(data.get("line1") or "").strip():
        errors["line1"] = "Address Line 1 is required"

    phone = str(data.get("phone") or "")
    if not phone.strip():
        errors["phone"] = "Phone number is required"
    elif not validate_phone(phone):
        errors["phone"] = "Phone number must be exactly 10 digits"

    if not str(data.get("city_name") or "").strip():
        errors["city_name"] = "City is required"
    if not str(data.get("province_name") or "").strip():
        errors["province_name"] = "Province is required"
    return errors


def validate_address(data: Dict[str, Any]) -> None:
    errors = address_errors(data)
    if errors:
        raise ValidationError(errors)


_SHIPPING_REQUIRED = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "email": "Email is required",
}


def parse_shipping(data: Optional[Dict[str, Any]]) -> ShippingDetails:
    """
    Valida el formulario de envío (mínimo: nombre, apellido, email).
    Lanza ValidationError con el campo que falla.
    """
    if not isinstance(data, dict):
        raise ValidationError({"shipping": "Shipping information is required"})

    errors = {
        field: msg for field, msg in _SHIPPING_REQUIRED.items()
        if not str(data.get(field) or "").strip()
    }
    if not errors and data.get("phone") and not validate_phone(str(data["phone"])):
        errors["phone"] = "Phone number must be exactly 10 digits"
    if errors:
        raise ValidationError(errors)

    try:
        return ShippingDetails.model_validate({k: v for k, v in data.items() if v is not None})
    except PydanticValidationError as e:
        field_errors: Dict[str, str] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err.get("loc") else "shipping"
            field_errors[field] = "Email is invalid" if field == "email" else err["msg"]
        raise ValidationError(field_errors) from e


def parse_cart(data: Any) -> CartSnapshot:
    """El carrito que manda el checkout. Vacío -> ValidationError."""
    items = data.get("items") if isinstance(data, dict) else None
    if not items:
        raise ValidationError({"cart": "Cart is empty"})
    try:
        return CartSnapshot.from_items([CartItem.model_validate(it) for it in items])
    except PydanticValidationError as e:
        raise ValidationError({"cart": "Cart contains invalid items"}) from e


def validate_checkout(cart_data: Any, shipping_data: Any):
    """(CartSnapshot, ShippingDetails) o ValidationError. Sin red."""
    return parse_cart(cart_data), parse_shipping(shipping_data)
