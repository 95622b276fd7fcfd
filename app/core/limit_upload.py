# ----------------------
# file   : app/core/limit_upload.py
# function: 요청 바디 크기 제한 미들웨어 (content-length 기준, 바디를 읽기 전에 거부)
# ----------------------

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.utils.logger import logger

MAX_BODY_SIZE = 100 * 1024 * 1024 * 1024  # 100GB


class LimitUploadSizeMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_size: int = MAX_BODY_SIZE):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            logger.info(f"[LIMIT] 요청 거부: {request.url.path} ({content_length} bytes)")
            return JSONResponse(
                status_code=413,
                content={
                    "detail": f"Request body too large, size: {content_length} bytes, "
                              f"maximum: {self.max_body_size} bytes."
                },
            )
        return await call_next(request)
