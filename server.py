from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from datetime import datetime, timezone

# Load config first (triggers dotenv)
from config import CORS_ORIGINS
from database import client, get_db
from core.exceptions import AppError

# Import all routers
from routes.auth import router as auth_router
from routes.quotations import router as quotations_router
from routes.notifications import router as notifications_router
from routes.audit import router as audit_router

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Create the main app
app = FastAPI(title="Site Manager API")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register all routers under /api prefix
API_PREFIX = "/api"
app.include_router(auth_router,          prefix=API_PREFIX)
app.include_router(quotations_router,    prefix=API_PREFIX)
app.include_router(notifications_router, prefix=API_PREFIX)
app.include_router(audit_router,         prefix=API_PREFIX)


# ── Error envelope ─────────────────────────────────────────

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error(exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error(500, "Internal server error")


# ── Root / Health ──────────────────────────────────────────

@app.get("/api/")
async def root():
    return {"message": "Site Manager API", "version": "1.0.0"}


@app.get("/api/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── Startup / Shutdown ─────────────────────────────────────

@app.on_event("startup")
async def ensure_indexes():
    db = get_db()
    await db.users.create_index("email", unique=True)
    await db.supervisors.create_index("email", unique=True)
    logger.info("User and supervisor email indexes ensured")


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
