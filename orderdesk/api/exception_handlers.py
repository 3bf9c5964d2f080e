# FILE: orderdesk/api/exception_handlers.py
from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def err(msg: str,
        *,
        status_code: int,
        code: Optional[str] = None,
        details: Any = None) -> JSONResponse:
    """{"ok": false, "error": {"msg", "code", "details"}}"""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "ok": False,
            "error": {
                "msg": msg,
                "code": code,
                "details": details
            },
        }),
    )


def _status_code_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "ERROR"


def _validation_details(exc: RequestValidationError) -> list:
    return [{
        "loc": list(e.get("loc", ())),
        "msg": e.get("msg"),
        "type": e.get("type"),
    } for e in exc.errors()]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # exc.detail can be str/dict/list
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        details = None if isinstance(exc.detail, str) else exc.detail
        return err(msg=msg,
                   status_code=exc.status_code,
                   code=_status_code_name(exc.status_code),
                   details=details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return err(msg="Validation error",
                   status_code=400,
                   code="VALIDATION_ERROR",
                   details=_validation_details(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return err(msg="Internal server error", status_code=500, code="INTERNAL_SERVER_ERROR")
