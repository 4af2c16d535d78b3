# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from app.models import profile as _profile_models  # noqa: F401
from app.models import qcs as _qcs_models  # noqa: F401
from app.models import compatibility as _compatibility_models  # noqa: F401
from app.models import usage as _usage_models  # noqa: F401
from app.models import interaction as _interaction_models  # noqa: F401
from app.models import match as _match_models  # noqa: F401


# Routers
from app.routers.compatibility import router as compatibility_router
from app.routers.qcs import router as qcs_router
from app.routers.pairing import router as pairing_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Render every HTTP error as {"success": false, "error": ...}.

    Dict details (e.g. limit errors) contribute their extra keys, such as
    the usage snapshot, next to the message.
    """
    body: dict = {"success": False}
    if isinstance(exc.detail, dict):
        extra = dict(exc.detail)
        body["error"] = extra.pop("message", "Request failed")
        body.update(extra)
    else:
        body["error"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Malformed request bodies are client errors: 400 in the same envelope.

    error reads e.g. "user2_id: Field required"; one entry per problem.
    """
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": "; ".join(problems) or "Invalid request"},
    )


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(compatibility_router, prefix=settings.API_V1_STR)
app.include_router(qcs_router, prefix=settings.API_V1_STR)
app.include_router(pairing_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "pairing-qcs-backend"}
