# ----------------------
# file   : app/core/upload_middleware.py
# function: 라우트 단위 업로드 처리 단계 (FastAPI Depends 로 핸들러 실행 전에 동작)
#           - UploadHandler      : multipart 수신 후 검증/저장, request.state.uploaded_files 에 결과 부착
#           - PreUploadValidator : 파일 전송 전 JSON 매니페스트(이름/크기)만으로 검증
# ----------------------

import json
from typing import Any, Dict, Optional

from fastapi import Request
from pydantic import ValidationError

from app.core.errors import MalformedRequestError, UploadSizeExceededError, UploadValidationError
from app.core.multipart import parse_boundary, read_form_entries
from app.models.file_meta import PreUploadManifest, UploadResult
from app.models.upload_options import UploadOptions
from app.services.stager import UploadStager
from app.services.validation import validate_declared
from app.utils.logger import logger


# ----------------------
# param   : request - 요청 객체
# function: content-length 헤더 파싱 (없으면 None)
# return  : int | None
# ----------------------
def declared_content_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise MalformedRequestError(f"Invalid content-length header: {raw!r}.")


# ----------------------
# class   : UploadHandler
# function: 옵션은 생성 시 기본값과 병합 후 고정, 요청마다 __call__ 실행
# ----------------------
class UploadHandler:
    def __init__(
        self,
        options: Optional[UploadOptions] = None,
        temp_upload_dir: str = "temp_uploads",
        staging_dir: Optional[str] = None,
        **overrides: Any,
    ):
        if options is None:
            options = UploadOptions.merge(**overrides)
        elif overrides:
            options = UploadOptions.merge(options.model_dump(), **overrides)
        self.options = options
        self.staging_dir = staging_dir
        self.stager = UploadStager(options, temp_upload_dir=temp_upload_dir)

    async def __call__(self, request: Request) -> UploadResult:
        content_length = declared_content_length(request)
        if content_length is not None and content_length > self.options.max_size_bytes:
            raise UploadSizeExceededError(
                f"Maximum total upload size exceeded, size: {content_length} bytes, "
                f"maximum: {self.options.max_size_bytes} bytes."
            )

        parse_boundary(request.headers.get("content-type"))

        entries = await read_form_entries(request, staging_dir=self.staging_dir)
        result = await self.stager.stage(entries)

        request.state.uploaded_files = result
        return result


# ----------------------
# class   : PreUploadValidator
# function: 드래그앤드롭 UI 등이 전송 전에 서버 수용 여부를 확인하는 단계 (부작용 없음)
# ----------------------
class PreUploadValidator:
    def __init__(self, options: Optional[UploadOptions] = None, **overrides: Any):
        if options is None:
            options = UploadOptions.merge(**overrides)
        elif overrides:
            options = UploadOptions.merge(options.model_dump(), **overrides)
        self.options = options

    async def __call__(self, request: Request) -> PreUploadManifest:
        try:
            body: Dict[str, Any] = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise MalformedRequestError("Invalid pre-upload data, request body must be JSON.")

        if not isinstance(body, dict):
            raise MalformedRequestError('Invalid pre-upload data, expected an object with a "value" field.')
        try:
            manifest = PreUploadManifest.model_validate(body)
        except ValidationError as e:
            raise MalformedRequestError(f"Invalid pre-upload data: {e.error_count()} invalid field(s).")

        violations = validate_declared(manifest.declared_files(), self.options)
        if violations:
            raise UploadValidationError(violations)

        logger.debug(f"[PRE-UPLOAD] 선언 파일 {len(manifest.declared_files())}개 검증 통과")
        return manifest
