# etce_auth/main.py

from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# ---------------------------------------------
# LOAD ENVIRONMENT VARIABLES
# ---------------------------------------------
load_dotenv()

from etce_auth.config import settings  # noqa: E402
from etce_auth.db import init_db  # noqa: E402
from etce_auth.errors import AuthError  # noqa: E402
from etce_auth.logging_config import get_logger  # noqa: E402
from etce_auth.middleware import request_id_middleware  # noqa: E402
from etce_auth.routers import health  # noqa: E402
from etce_auth.routers.accounts import student_router, faculty_router  # noqa: E402

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("app_started", version=settings.APP_VERSION)
    yield
    logger.info("app_stopped")


# ---------------------------------------------
# APP INIT
# ---------------------------------------------
app = FastAPI(
    title=f"{settings.APP_NAME} Auth API",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------
# CORS
# ---------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials="*" not in settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(request_id_middleware)


# ---------------------------------------------
# ERROR HANDLERS (every error body is {"message": ...})
# ---------------------------------------------
@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(e["type"] in ("missing", "string_too_short") for e in errors):
        return "All fields required"
    if any(e["type"] == "json_invalid" for e in errors):
        return "Invalid request body"

    fields = sorted({str(e["loc"][-1]) for e in errors if e.get("loc")})
    return f"Invalid {', '.join(fields)}" if fields else "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _validation_message(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", exc_info=exc)
    # rendered outside request_id_middleware, so the header is set here
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error"},
        headers={"X-Request-ID": request_id} if request_id else None,
    )


# ---------------------------------------------
# ROUTERS
# ---------------------------------------------

# Health
app.include_router(health.router, prefix="/health", tags=["Health"])

# Accounts
app.include_router(student_router, prefix="/api/student")
app.include_router(faculty_router, prefix="/api/faculty")


# ---------------------------------------------
# ROOT ENDPOINT
# ---------------------------------------------
@app.get("/")
def root():
    return {"message": f"{settings.APP_NAME} auth backend is running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("etce_auth.main:app", host="0.0.0.0", port=settings.PORT)
