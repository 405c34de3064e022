import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from study_schedule.api.routes import api_router
from study_schedule.core.config import get_settings
from study_schedule.core.errors import ScheduleError
from study_schedule.schemas.error import ErrorEnvelope

logger = logging.getLogger(__name__)


async def schedule_error_handler(request: Request, exc: ScheduleError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_kind} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_kind} on {request.url.path}: {exc.message}")
    envelope = ErrorEnvelope(
        status_code=exc.status_code, error_kind=exc.error_kind, message=exc.message
    )
    return JSONResponse(status_code=exc.status_code, content=envelope.dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    envelope = ErrorEnvelope(
        status_code=422, error_kind="InvalidArgument", message=problems or "Invalid request"
    )
    return JSONResponse(status_code=422, content=envelope.dict())


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Study Schedule Engine",
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ScheduleError, schedule_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(api_router)
    return app


app = create_app()
