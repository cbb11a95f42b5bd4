"""
Checkout con Stripe (hosted checkout).

- create_hosted_session: carrito + envío -> Checkout Session (id + url).
- order_details: Session (con line_items) -> resumen para la página de éxito.
- order_for_backend: resumen -> payload que espera el servlet de órdenes.
- construct_event: verifica la firma del webhook.

Stripe es dueño de la sesión de pago; aquí no se guarda nada.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import stripe

from config import (
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_CURRENCY,
    STRIPE_ALLOWED_COUNTRIES,
)
from models import CartSnapshot, ShippingDetails

log = logging.getLogger("uvicorn.error")

stripe.api_key = STRIPE_SECRET_KEY

DEFAULT_IMAGE = "/p1.png"
DELIVERY_MIN_DAYS = 5
DELIVERY_MAX_DAYS = 7


class CheckoutNotConfigured(RuntimeError):
    pass


def _require_stripe() -> None:
    if not stripe.api_key:
        raise CheckoutNotConfigured("Stripe no configurado (STRIPE_SECRET_KEY).")


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def _money(cents: Optional[int]) -> str:
    return f"${(cents or 0) / 100:.2f}"


def as_plain(obj):
    """StripeObject (y sus hijos) -> dict/list normales. Los dicts pasan tal cual."""
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        obj = to_dict()
    if isinstance(obj, dict):
        return {k: as_plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [as_plain(v) for v in obj]
    return obj



# ==========================
# Crear sesión
# ==========================

def build_line_items(cart: CartSnapshot) -> List[Dict[str, Any]]:
    line_items = []
    for item in cart.items:
        product_data: Dict[str, Any] = {
            "name": item.product.name or f"Product {item.product.id}",
            # para mapear el producto de Stripe al de la BD en el webhook
            "metadata": {"dbProductId": str(item.product.id), "colorId": str(item.color.id)},
        }
        images = [u for u in item.product.imageUrls if u.startswith("http")]
        if images:
            product_data["images"] = images[:8]
        line_items.append({
            "price_data": {
                "currency": STRIPE_CURRENCY,
                "product_data": product_data,
                "unit_amount": to_cents(item.product.basePrice),
            },
            "quantity": item.qty,
        })
    return line_items


def build_metadata(cart: CartSnapshot, shipping: ShippingDetails, user_id: Optional[str]) -> Dict[str, str]:
    # Stripe solo acepta strings en metadata
    metadata = {
        "firstName": shipping.firstName,
        "lastName": shipping.lastName,
        "email": str(shipping.email),
        "phone": shipping.phone,
        "address": shipping.address,
        "province": shipping.province,
        "city": shipping.city,
        "postalCode": shipping.postalCode,
        "note": shipping.note,
        "totalAmount": f"{cart.totalPrice:.2f}",
        "itemCount": str(cart.count),
    }
    if user_id:
        metadata["userId"] = str(user_id)
    return metadata


def create_hosted_session(
    cart: CartSnapshot,
    shipping: ShippingDetails,
    *,
    origin: str,
    user_id: Optional[str] = None,
):
    """Crea la Checkout Session en modo payment. Lanza stripe.StripeError."""
    _require_stripe()
    session = stripe.checkout.Session.create(
        mode="payment",
        payment_method_types=["card"],
        line_items=build_line_items(cart),
        success_url=f"{origin}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{origin}/checkout",
        customer_email=str(shipping.email),
        metadata=build_metadata(cart, shipping, user_id),
        shipping_address_collection={"allowed_countries": STRIPE_ALLOWED_COUNTRIES},
        shipping_options=[{
            "shipping_rate_data": {
                "type": "fixed_amount",
                "fixed_amount": {"amount": 0, "currency": STRIPE_CURRENCY},
                "display_name": "Free shipping",
                "delivery_estimate": {
                    "minimum": {"unit": "business_day", "value": DELIVERY_MIN_DAYS},
                    "maximum": {"unit": "business_day", "value": DELIVERY_MAX_DAYS},
                },
            },
        }],
    )
    log.info(f"[checkout] sesión {session['id']} creada user={user_id} items={cart.count}")
    return as_plain(session)


# ==========================
# Confirmación
# ==========================

def retrieve_session(session_id: str):
    _require_stripe()
    session = stripe.checkout.Session.retrieve(
        session_id,
        expand=["line_items", "line_items.data.price.product"],
    )
    return as_plain(session)


def _add_business_days(start: datetime, days: int) -> datetime:
    d = start
    while days > 0:
        d += timedelta(days=1)
        if d.weekday() < 5:
            days -= 1
    return d


def estimated_delivery(created: datetime) -> str:
    first = _add_business_days(created, DELIVERY_MIN_DAYS)
    last = _add_business_days(created, DELIVERY_MAX_DAYS)
    if first.month == last.month:
        return f"{first:%b} {first.day}–{last.day}, {last.year}"
    return f"{first:%b} {first.day} – {last:%b} {last.day}, {last.year}"


def _line_item(item) -> Dict[str, Any]:
    price = item.get("price") or {}
    product = price.get("product")
    product_id = product
    image = DEFAULT_IMAGE
    db_product_id = None
    if isinstance(product, dict):
        product_id = product.get("id")
        images = product.get("images") or []
        if images and str(images[0]).startswith("http"):
            image = images[0]
        db_product_id = (product.get("metadata") or {}).get("dbProductId")
    return {
        "name": item.get("description") or "Product",
        "quantity": item.get("quantity") or 0,
        "price": _money(item.get("amount_total")),
        "unitPrice": _money(price.get("unit_amount")),
        "unitAmount": price.get("unit_amount") or 0,
        "image": image,
        "productId": product_id,
        "dbProductId": int(db_product_id) if db_product_id and str(db_product_id).isdigit() else None,
    }


def order_details(session) -> Dict[str, Any]:
    """Resumen de la orden para la página /checkout/success."""
    session = as_plain(session)
    metadata = session.get("metadata") or {}
    created = datetime.fromtimestamp(session.get("created") or 0, tz=timezone.utc)
    line_items = (session.get("line_items") or {}).get("data") or []

    return {
        "sessionId": session["id"],
        "orderId": f"ORD-{session['id'][-10:].upper()}",
        "total": _money(session.get("amount_total")),
        "totalAmount": session.get("amount_total") or 0,
        "currency": (session.get("currency") or "").upper(),
        "status": session.get("payment_status"),
        "paymentStatus": session.get("payment_status"),
        "customerEmail": session.get("customer_email"),
        "userId": metadata.get("userId"),
        "shipping": {
            k: metadata.get(k, "") for k in
            ("firstName", "lastName", "email", "phone", "address", "province", "city", "postalCode", "note")
        },
        "items": [_line_item(it) for it in line_items],
        "estimatedDelivery": estimated_delivery(created),
        "createdAt": created.isoformat(),
    }


def order_for_backend(details: Dict[str, Any]) -> Dict[str, Any]:
    """Formato que espera el servlet de órdenes del backend Java."""
    user_id = details.get("userId")
    return {
        "orderId": details["orderId"],
        "sessionId": details["sessionId"],
        "createdAt": details["createdAt"],
        "paymentStatus": details["paymentStatus"],
        "totalAmount": details["totalAmount"] / 100,
        "currency": details["currency"],
        "customerEmail": details["customerEmail"],
        "user": {"id": user_id, "userId": user_id} if user_id else None,
        "shipping": details["shipping"],
        "products": [
            {
                "quantity": it["quantity"],
                "unitPrice": it["unitAmount"] / 100,
                "dbProductId": it["dbProductId"],
            }
            for it in details["items"]
        ],
    }


# ==========================
# Webhook
# ==========================

def construct_event(payload: bytes, sig_header: Optional[str]):
    """Lanza CheckoutNotConfigured si falta el secret; ValueError/SignatureVerificationError si es inválido."""
    if not STRIPE_WEBHOOK_SECRET:
        raise CheckoutNotConfigured("STRIPE_WEBHOOK_SECRET no configurado.")
    event = stripe.Webhook.construct_event(
        payload=payload,
        sig_header=sig_header,
        secret=STRIPE_WEBHOOK_SECRET,
    )
    return as_plain(event)
