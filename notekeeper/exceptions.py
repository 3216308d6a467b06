"""
Exception handlers that render every error as an ``ApiResponse`` envelope.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .schemas import ApiResponse

log = logging.getLogger("notekeeper.errors")


def _req_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def error_response(status_code: int, message: str, errors: Optional[list[str]] = None) -> JSONResponse:
    body: dict[str, Any] = ApiResponse.fail(message, errors).model_dump(by_alias=True)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def _describe(err: dict[str, Any]) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
    return f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg", "invalid"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail or "HTTP error"))

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        return error_response(422, "输入数据验证失败", [_describe(e) for e in exc.errors()])

    @app.exception_handler(SQLAlchemyError)
    async def _store_handler(request: Request, exc: SQLAlchemyError):
        log.exception("store failure request_id=%s path=%s", _req_id(request), request.url.path)
        return error_response(500, "数据存储操作失败")

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        log.exception("unhandled error request_id=%s path=%s", _req_id(request), request.url.path)
        return error_response(500, "服务器内部错误")
