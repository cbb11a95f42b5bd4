# Formulario de contacto / correos transaccionales desde el front.

import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse

from services.backend import ClientInputError, require
from services.emailer import send_email
from routers.proxy_helpers import read_json

router = APIRouter(prefix="/api", tags=["Contact"])
log = logging.getLogger("uvicorn.error")


def _send_safely(to: str, subject: str, html, text) -> None:
    try:
        send_email(to, subject, html=html, text=text)
    except Exception:
        # No exponemos detalles; el cliente ya recibió su respuesta
        log.exception(f"[email] falló el envío a {to}")


@router.post("/send-email")
async def send_email_route(request: Request, background: BackgroundTasks):
    payload = await read_json(request)
    require(payload, "to", "subject",
            message="Missing required fields: to, subject, and either html or text")
    if not (payload.get("html") or payload.get("text")):
        raise ClientInputError("Missing required fields: to, subject, and either html or text")

    background.add_task(_send_safely, payload["to"], payload["subject"], payload.get("html"), payload.get("text"))
    return JSONResponse({"success": True, "data": {"message": "Email queued"}})
