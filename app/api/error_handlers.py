"""Exception handlers for the FastAPI app."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.services.reporting import InvalidReportFilterError

logger = logging.getLogger("app.api.errors")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidReportFilterError)
    async def report_filter_handler(request: Request, exc: InvalidReportFilterError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:  # noqa: WPS430
        logger.exception("request_storage_error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"success": False, "error": "Storage error"})
