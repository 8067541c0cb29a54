# app/main.py
"""
FastAPI application entry point.
Includes CORS, request timing, global error handlers, all routers and the
real-time WebSocket channel.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import vehicles, owners, agencies, stats, parameters, payments, realtime, health
from app.database import create_tables
from app.config import settings
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="SIU Vehicle Registry API",
    description="Shared vehicle registry for customs, ONT, insurers, mairies, MTS, police and the state dashboard.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (agency portals are served from another origin) ────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Validation errors → 400 ──────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Requête invalide"))
    logger.info(f"Validation error on {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "errors": jsonable_encoder(errors, exclude={"ctx", "input", "url"})},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/", tags=["Health"])
def root():
    return {"message": "Bienvenue sur l'API du SIU Mali !"}


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,   tags=["Véhicules"])
app.include_router(owners.router,     tags=["Propriétaires"])
app.include_router(agencies.router,   tags=["Agences"])
app.include_router(stats.router,      tags=["État"])
app.include_router(parameters.router, tags=["Paramètres"])
app.include_router(payments.router,   tags=["Paiements"])
app.include_router(health.router,     tags=["Health"])
app.include_router(realtime.router)


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("SIU backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(f"Audit ledger: {settings.AUDIT_LEDGER_URL or 'disabled (log only)'}")
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET not set: bearer tokens are decoded without signature verification")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("API docs at /docs, live channel at /ws")


@app.on_event("shutdown")
async def shutdown():
    logger.info("SIU backend shutting down...")
