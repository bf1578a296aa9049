"""
오류 응답 매핑

LedgerError 종류 → HTTP 상태 코드.
응답 본문: {"error": kind, "message": msg}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.ledger.errors import ErrorKind, LedgerError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BUSINESS_RULE: 422,
    ErrorKind.STORAGE: 500,
}

# 저장소 오류는 원인을 노출하지 않음
STORAGE_PUBLIC_MESSAGE = "internal storage error"


def error_body(kind: ErrorKind, message: str) -> dict[str, str]:
    return {"error": kind.value, "message": message}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """LedgerError → JSON 응답"""
    status_code = STATUS_BY_KIND.get(exc.kind, 500)

    if exc.kind == ErrorKind.STORAGE:
        logger.error(
            "저장소 오류",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=status_code,
            content=error_body(exc.kind, STORAGE_PUBLIC_MESSAGE),
        )

    logger.debug(
        f"요청 거부: {exc.kind.value} {exc.message}",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=status_code, content=error_body(exc.kind, exc.message))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 형식 오류 → 400 (VALIDATION)"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "invalid request")
    else:
        message = "invalid request"

    return JSONResponse(
        status_code=STATUS_BY_KIND[ErrorKind.VALIDATION],
        content=error_body(ErrorKind.VALIDATION, message),
    )


def install_error_handlers(app: FastAPI) -> None:
    """앱에 오류 핸들러 등록"""
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
