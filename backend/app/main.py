import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import setup_logging
from app.routers.surveys import router as surveys_router
from app.services.storage import StorageFailure

setup_logging(settings.log_level, settings.log_file or None)
logger = logging.getLogger(__name__)

app = FastAPI(title="Exhibition Survey API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

app.include_router(surveys_router)


def _error_message(request: Request) -> str:
    if request.method == "GET":
        return "Failed to fetch surveys"
    return "Failed to save survey"


# Request-shape and storage errors share one generic 500 reply.

@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": _error_message(request)}, status_code=500)


@app.exception_handler(RequestValidationError)
async def malformed_request_handler(request: Request, exc: RequestValidationError):
    logger.warning("Malformed request on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse({"error": _error_message(request)}, status_code=500)
