"""FastAPI application for the attendance desk."""
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

load_dotenv()

from libs.common.logging import configure_logging, get_logger
from services.attendance_service.backend import AttendanceBackend
from services.attendance_service.client import AttendanceApiClient
from services.attendance_service.desk import AttendanceDesk
from services.attendance_service.exceptions import (
    AttendanceError,
    StateTransitionError,
    TransportError,
    ValidationError,
)
from services.attendance_service.router import router as attendance_router

logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    TransportError: 502,
    StateTransitionError: 409,
}


async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        400,
    )
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": exc.message},
    )


def create_app(backend: Optional[AttendanceBackend] = None, **desk_options) -> FastAPI:
    """Create and configure the attendance desk FastAPI app."""
    app = FastAPI(
        title="Batch Attendance Desk",
        version="0.1.0",
        description="Draft, reconcile and submit batch attendance.",
    )
    app.state.desk = AttendanceDesk(backend or AttendanceApiClient(), **desk_options)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "attendance"}

    app.add_exception_handler(AttendanceError, attendance_error_handler)
    app.include_router(attendance_router, prefix="/attendance")

    return app


configure_logging()
app = create_app()
