# shorttrack/main.py
from __future__ import annotations

# --- Framework / Utils ---
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shorttrack.core.config import settings
from shorttrack.core.errors import AppError, InternalError, ValidationError
from shorttrack.core.rate_limit import limiter
from shorttrack.middleware.logging import LoggingMiddleware

# --- DB Bootstrap ---
from shorttrack.db.database import init_models

# --- API-Router (JSON) ---
from shorttrack.api.routes import (
    auth as auth_routes,
    links as links_routes,
)


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)


# =============================================================================
# App-Instanz
# =============================================================================
app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
)

app.state.limiter = limiter


# =============================================================================
# Middleware
# =============================================================================
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Startup: Tabellen anlegen
# =============================================================================
@app.on_event("startup")
def on_startup() -> None:
    init_models()


# =============================================================================
# Fehlerbehandlung: einheitliches {"ok": false, "error", "field", "message"}
# =============================================================================
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalError):
        log.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        exc = InternalError()  # keine internen Details an den Client
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [p for p in first.get("loc", ()) if isinstance(p, str) and p != "body"]
    err = ValidationError(first.get("msg") or "Invalid input", field=loc[-1] if loc else None)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unerwarteter Fehler bei %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# =============================================================================
# Health
# =============================================================================
@app.get("/health", tags=["Health"], openapi_extra={"security": []})
def health() -> dict:
    return {"ok": True}


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse(url=settings.APP_BASE_URL, status_code=302)


# =============================================================================
# Router registrieren
# =============================================================================
app.include_router(auth_routes.router, prefix="/api/auth")
app.include_router(links_routes.router, prefix="/api/links")

# Redirect /{slug} zuletzt, damit er keine anderen Pfade ueberdeckt
app.include_router(links_routes.public_router)


# =============================================================================
# OpenAPI: Bearer-Auth global aktivieren
# =============================================================================
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=settings.APP_NAME,
        version="1.0.0",
        description="ShortTrack API",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["BearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }

    # Global Security
    openapi_schema["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
