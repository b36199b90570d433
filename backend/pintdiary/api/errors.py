"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pintdiary.domain.exceptions import (
	CollaboratorUnavailable,
	DiaryError,
	InvalidArgument,
	NotFound,
	Unauthorized,
)
from pintdiary.obs import logging as obs_logging

_STATUS_BY_ERROR = (
	(NotFound, status.HTTP_404_NOT_FOUND),
	(Unauthorized, status.HTTP_403_FORBIDDEN),
	(InvalidArgument, status.HTTP_400_BAD_REQUEST),
	(CollaboratorUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_request_id(request: Request, default: str = "unknown") -> str:
	return obs_logging.current_request_id() or getattr(request.state, "request_id", None) or default


def map_domain_error(exc: DiaryError) -> HTTPException:
	for error_type, status_code in _STATUS_BY_ERROR:
		if isinstance(exc, error_type):
			return HTTPException(status_code, detail=exc.reason)
	return HTTPException(status.HTTP_400_BAD_REQUEST, detail=exc.reason)


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		payload = {"detail": exc.detail, "request_id": get_request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		payload = {
			"detail": "validation_error",
			"errors": jsonable_errors(exc),
			"request_id": get_request_id(request),
		}
		return JSONResponse(status_code=422, content=payload)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
	errors = []
	for error in exc.errors():
		errors.append({key: value for key, value in error.items() if key in ("loc", "msg", "type")})
	return errors
