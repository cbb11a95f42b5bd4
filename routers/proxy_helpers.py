# Helpers compartidos por los routers /api/*

import logging
from typing import Any, Dict

from fastapi import Request

from services.backend import ClientInputError

log = logging.getLogger("uvicorn.error")


async def read_json(request: Request) -> Dict[str, Any]:
    """Cuerpo JSON del navegador. Vacío -> {}; inválido -> ClientInputError."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = await request.json()
    except ValueError:
        raise ClientInputError("Invalid JSON body")
    if not isinstance(payload, dict):
        raise ClientInputError("JSON body must be an object")
    return payload


def as_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ClientInputError(f"{field} must be an integer")
