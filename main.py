import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.staticfiles import StaticFiles

from config import CORS_ORIGINS, FRONTEND_DIR, LOG_LEVEL
from routers import auth, billing, cart, contact, products, session, users, wishlist
from services.backend import BackendClient, ProxyError, ProxyResult
from utils.guard import guard_redirect
from utils.validators import ValidationError

log = logging.getLogger("uvicorn.error")
log.setLevel(LOG_LEVEL)

# Comandos varios
# source .venv/bin/activate
# uvicorn main:app --reload


# --- Ciclo de vida ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # un solo cliente HTTP hacia el backend Java para toda la app
    app.state.backend = BackendClient.from_config()
    yield
    await app.state.backend.aclose()


app = FastAPI(title="Kaidenz Storefront", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Cookie", "Authorization", "X-User-Id"],
)


# --- Guard de rutas (antes de cualquier página) ---
@app.middleware("http")
async def route_guard(request: Request, call_next):
    target = guard_redirect(request.url.path, request.cookies)
    if target:
        return RedirectResponse(target, status_code=307)
    return await call_next(request)


# --- Errores -> sobre uniforme {success, error} ---
@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    log.info(f"[api] {request.url.path}: {type(exc).__name__} {exc.message}")
    return ProxyResult.fail(exc.message or "Invalid request", exc.status_code).to_response()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        {"success": False, "error": exc.summary(), "fields": exc.errors},
        status_code=exc.status_code,
    )


app.include_router(session.router)
app.include_router(auth.router)
app.include_router(cart.router)
app.include_router(wishlist.router)
app.include_router(products.router)
app.include_router(users.router)
app.include_router(billing.router)
app.include_router(contact.router)


# ruta de prueba para verificar que la app que corre es esta
@app.get("/ping")
def ping():
    return {"ok": True}


# End point vacio para el error que venia de Chrome devtools
@app.get("/.well-known/appspecific/com.chrome.devtools.json")
def chrome_devtools_probe():
    return Response(status_code=204)


# --- Front-end compilado (opcional), SIEMPRE al final para no tapar /api ---
if FRONTEND_DIR and Path(FRONTEND_DIR).is_dir():
    app.mount("/", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")
    log.info(f"[main] sirviendo front-end desde {FRONTEND_DIR}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
