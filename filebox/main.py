from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from .audit import OperationAuditMiddleware
from .config import settings
from .exceptions import FileboxError
from .logger import logger
from .routers import files
from .utils.decompression import get_archive_extractor


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    settings.root_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Serving files from {settings.root_path.resolve()}")

    extractor = get_archive_extractor()
    if extractor.available:
        logger.info(f"Archive extraction enabled ({extractor.binary})")
    logger.info("Startup complete.")
    yield


api_app = FastAPI(root_path="/api")

# Middleware added last runs first
api_app.add_middleware(OperationAuditMiddleware)

api_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_app.include_router(files.router)


@api_app.exception_handler(FileboxError)
async def filebox_error_handler(request: Request, exc: FileboxError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


@api_app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"Invalid request: {details}", "code": "INVALID_INPUT"},
    )


@api_app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@api_app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": str(exc) or "Internal Server Error"},
    )


app = FastAPI(lifespan=lifespan, title="Filebox")
app.mount("/api", api_app)
