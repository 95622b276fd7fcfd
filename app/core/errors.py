# ----------------------
# file   : app/core/errors.py
# function: 업로드 처리 예외 정의 및 FastAPI 예외 핸들러 등록
# ----------------------

from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.utils.logger import logger


class UploadError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedRequestError(UploadError):
    """Missing or invalid content-type/boundary, or an unreadable body."""


class UploadSizeExceededError(UploadError):
    """Declared content-length over the configured cap, raised before decoding."""

    status_code = 413


class UploadValidationError(UploadError):
    """One or more per-file violations, reported together."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__(" ".join(self.violations))


class UploadIOError(UploadError):
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# ----------------------
# param   : request - 요청 객체
# param   : exc - 발생한 UploadError
# function: UploadError → JSON 에러 응답 변환
# return  : JSONResponse
# ----------------------
async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    body = {"detail": exc.message}
    if isinstance(exc, UploadValidationError):
        body["violations"] = exc.violations
    if exc.status_code >= 500:
        logger.error(f"[UPLOAD] {request.url.path} 처리 실패: {exc.message}")
    else:
        logger.info(f"[UPLOAD] {request.url.path} 요청 거부 ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UploadError, upload_error_handler)
