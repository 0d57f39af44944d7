from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from portal.api.v1.routes import router as api_router
from portal.core.config import get_settings, parse_cors_origins
import logging
import time
from portal.core.database import Base, engine, SessionLocal
from portal.core.errors import PortalError
from portal.core.logging import configure_logging
from portal.middlewares.rate_limit import limiter
from portal.models import User, UserRole
from portal.services.provisioning import ProvisioningApiError


settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
_started_at = time.time()


@app.exception_handler(PortalError)
async def portal_error_handler(request, exc: PortalError):
    if exc.status_code >= 403:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(ProvisioningApiError)
async def provisioning_error_handler(request, exc: ProvisioningApiError):
    logger.warning("Provisioning API failure on %s: status=%s message=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=502,
        content={"detail": {"message": exc.message, "provider_status": exc.status_code}},
    )


@app.exception_handler(SQLAlchemyTimeoutError)
async def sqlalchemy_timeout_handler(request, exc):
    logger.warning("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service is busy. Please retry in a moment."},
    )


allow_origins = parse_cors_origins(settings.cors_origins or "")
logger.info("CORS allow_origins=%s", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


def _bootstrap_admins() -> None:
    raw = (settings.bootstrap_admin_usernames or "").strip()
    if not raw:
        return

    usernames = [item.strip() for item in raw.split(",") if item.strip()]
    if not usernames:
        return

    db = SessionLocal()
    try:
        updated = 0
        missing: list[str] = []
        for username in usernames:
            user = db.query(User).filter(User.username == username).first()
            if not user:
                missing.append(username)
                continue
            if user.role != UserRole.ADMIN:
                user.role = UserRole.ADMIN
                updated += 1
        if updated:
            db.commit()
            logger.info("Bootstrapped admin role for %s user(s).", updated)
        if missing:
            logger.warning("BOOTSTRAP_ADMIN_USERNAMES users not found: %s", ", ".join(missing))
    except Exception as exc:
        logger.warning("Admin bootstrap failed: %s", exc)
    finally:
        db.close()


@app.on_event("startup")
def ensure_tables():
    if not settings.auto_create_tables:
        _bootstrap_admins()
        return

    # Optional local fallback for fresh environments.
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as exc:
        logger.warning("DB unavailable on startup, skipping table creation: %s", exc)
    _bootstrap_admins()


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    # Liveness: process is up.
    return {
        "status": "ok",
        "uptime_seconds": int(max(0, time.time() - _started_at)),
        "service": settings.app_name,
    }


@app.get("/readyz")
def readyz():
    # Readiness: database is reachable.
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "uptime_seconds": int(max(0, time.time() - _started_at)),
        }
    except Exception as exc:
        logger.warning("Readiness DB check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "detail": "database_unavailable"},
        )
    finally:
        db.close()
