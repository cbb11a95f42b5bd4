import logging

import stripe
from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from config import PUBLIC_BASE_URL, USER_ID_COOKIE
from services import checkout
from services.backend import BackendClient, ProxyError, get_backend, require
from utils.validators import validate_checkout
from routers.proxy_helpers import read_json

router = APIRouter(prefix="/api", tags=["Billing"])
log = logging.getLogger("uvicorn.error")


# ==========================
# Rutas
# ==========================

@router.post("/create-checkout-session")
async def create_checkout_session(request: Request):
    """
    Crea una Stripe Checkout Session (modo payment) y devuelve la URL
    a la que el navegador debe redirigir.
    """
    payload = await read_json(request)
    # ValidationError -> 400 antes de tocar Stripe
    cart, shipping = validate_checkout(payload.get("cartData"), payload.get("shippingData"))

    origin = (request.headers.get("origin") or PUBLIC_BASE_URL).rstrip("/")
    user_id = request.cookies.get(USER_ID_COOKIE)

    try:
        session = await run_in_threadpool(
            checkout.create_hosted_session, cart, shipping, origin=origin, user_id=user_id,
        )
    except checkout.CheckoutNotConfigured as e:
        log.error(f"[checkout] {e}")
        return JSONResponse({"success": False, "error": "Failed to create checkout session"}, status_code=500)
    except stripe.StripeError as e:
        log.warning(f"[checkout] Stripe rechazó la sesión: {e}")
        return JSONResponse({"success": False, "error": "Failed to create checkout session"}, status_code=500)

    return JSONResponse({"success": True, "data": {"sessionId": session["id"], "url": session["url"]}})


@router.get("/get-session-details")
async def get_session_details(request: Request):
    params = dict(request.query_params)
    require(params, "session_id", message="Session ID is required")

    try:
        session = await run_in_threadpool(checkout.retrieve_session, params["session_id"])
    except stripe.InvalidRequestError:
        return JSONResponse({"success": False, "error": "Session not found"}, status_code=404)
    except (stripe.StripeError, checkout.CheckoutNotConfigured) as e:
        log.warning(f"[checkout] no se pudo leer la sesión: {e}")
        return JSONResponse({"success": False, "error": "Failed to retrieve session details"}, status_code=500)

    return JSONResponse({"success": True, "data": {"orderDetails": checkout.order_details(session)}})


@router.post("/webhooks/stripe")
async def stripe_webhook(request: Request, backend: BackendClient = Depends(get_backend)):
    """
    Webhook de Stripe.
    IMPORTANTE: debe ser accesible públicamente y con STRIPE_WEBHOOK_SECRET.
    """
    payload = await request.body()
    sig = request.headers.get("stripe-signature")

    try:
        event = checkout.construct_event(payload, sig)
    except checkout.CheckoutNotConfigured as e:
        raise HTTPException(status_code=500, detail=str(e))
    except (ValueError, stripe.SignatureVerificationError) as e:
        log.warning(f"[webhook] firma inválida: {e}")
        return PlainTextResponse("Invalid signature", status_code=400)

    etype = event["type"]
    data = event["data"]["object"]
    handler = WEBHOOK_HANDLERS.get(etype)
    if handler is None:
        log.info(f"[webhook] evento no manejado {etype}")
        return JSONResponse({"received": True})

    try:
        await handler(data, backend)
    except Exception:
        log.exception(f"[webhook] error procesando {etype}")
        return PlainTextResponse("Error processing webhook", status_code=500)
    return JSONResponse({"received": True})


# ==========================
# Handlers del webhook
# ==========================

async def _checkout_completed(session, backend: BackendClient) -> None:
    """
    Pago completado:
    1) manda la orden al servlet de órdenes
    2) limpia el carrito del usuario (userId viene en la metadata)
    """
    log.info(f"[webhook] checkout completed session={session['id']} status={session.get('payment_status')}")

    full = await run_in_threadpool(checkout.retrieve_session, session["id"])
    details = checkout.order_details(full)

    try:
        reply = await backend.call("POST", "/Oders", json=checkout.order_for_backend(details), expect_json=False)
        log.info(f"[webhook] orden {details['orderId']} enviada al backend ({reply.status_code})")
    except ProxyError as e:
        log.error(f"[webhook] no se pudo registrar la orden {details['orderId']}: {e.status_code} {e.message}")

    user_id = details.get("userId")
    if not user_id:
        log.warning(f"[webhook] session {session['id']} sin userId: el carrito se limpia al volver a /checkout/success")
        return
    try:
        await backend.call(
            "POST", "/ClearCart",
            json={"userId": user_id, "sessionId": session["id"], "action": "clear_cart_after_payment"},
        )
        log.info(f"[webhook] carrito limpiado user={user_id}")
    except ProxyError as e:
        log.error(f"[webhook] no se pudo limpiar el carrito user={user_id}: {e.status_code} {e.message}")


async def _log_only(obj, backend: BackendClient) -> None:
    log.info(
        f"[webhook] {obj.get('object')} {obj.get('id')} "
        f"status={obj.get('payment_status') or obj.get('status')} metadata={obj.get('metadata')}"
    )


async def _payment_failed(intent, backend: BackendClient) -> None:
    err = (intent.get("last_payment_error") or {}).get("message")
    log.warning(f"[webhook] pago fallido intent={intent.get('id')} error={err}")


WEBHOOK_HANDLERS = {
    "checkout.session.completed": _checkout_completed,
    "checkout.session.async_payment_succeeded": _log_only,
    "checkout.session.async_payment_failed": _log_only,
    "checkout.session.expired": _log_only,
    "payment_intent.succeeded": _log_only,
    "payment_intent.payment_failed": _payment_failed,
}
