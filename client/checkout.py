"""
Flujo de checkout del lado del cliente.

start(): valida el formulario sin red, manda el snapshot del carrito y
devuelve la URL de Stripe Checkout a la que hay que redirigir.
confirm(): al volver a /checkout/success carga el resumen de la orden y
vacía el carrito (el webhook también lo vacía; esto es el respaldo).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from client.api import StorefrontAPI
from client.cart_store import CartStore
from utils.validators import ValidationError, parse_shipping

log = logging.getLogger("uvicorn.error")

CHECKOUT_ERROR = "Failed to create checkout session"


@dataclass
class CheckoutOutcome:
    url: Optional[str] = None
    session_id: Optional[str] = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.url is not None


@dataclass
class ConfirmOutcome:
    order: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    cart_cleared: bool = False


class CheckoutOrchestrator:
    def __init__(self, api: StorefrontAPI, cart: CartStore) -> None:
        self.api = api
        self.cart = cart
        self.submitting = False

    def validate(self, shipping: Dict[str, Any]) -> Dict[str, str]:
        """Errores por campo; {} si todo bien. No toca la red."""
        if not self.cart.items:
            return {"cart": "Cart is empty"}
        try:
            parse_shipping(dict(shipping or {}))
        except ValidationError as e:
            return e.errors
        return {}

    async def start(self, shipping: Dict[str, Any]) -> CheckoutOutcome:
        errors = self.validate(shipping)
        if errors:
            return CheckoutOutcome(error=ValidationError(errors).summary(), field_errors=errors)
        if self.submitting:
            return CheckoutOutcome(error="Checkout already in progress")

        snapshot = self.cart.snapshot()
        cart_data = {"items": snapshot.model_dump(mode="json")["items"], "totalPrice": snapshot.totalPrice}

        self.submitting = True
        try:
            result = await self.api.create_checkout_session(cart_data, dict(shipping))
        finally:
            self.submitting = False

        data = result.data if isinstance(result.data, dict) else {}
        if not result.success or not data.get("url"):
            log.warning(f"[checkout] no se pudo crear la sesión: {result.error}")
            return CheckoutOutcome(error=CHECKOUT_ERROR, field_errors=result.fields)
        return CheckoutOutcome(url=data["url"], session_id=data.get("sessionId"))

    async def confirm(self, session_id: str) -> ConfirmOutcome:
        if not session_id:
            return ConfirmOutcome(error="Session ID is required")

        result = await self.api.get_session_details(session_id)
        if not result.success or not isinstance(result.data, dict):
            return ConfirmOutcome(error=result.error or "Failed to retrieve session details")

        order = result.data.get("orderDetails") or {}
        cleared = await self.cart.clear(order.get("userId"), session_id)
        if not cleared.success:
            log.warning(f"[checkout] no se pudo vaciar el carrito tras el pago: {cleared.error}")
        return ConfirmOutcome(order=order, cart_cleared=cleared.success)
