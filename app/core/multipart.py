# ----------------------
# file   : app/core/multipart.py
# function: multipart/form-data 디코딩 연결부 - Starlette form 파싱 결과를 스크래치 파일 기반 FormEntry 로 변환
# ----------------------

import re
import shutil
import tempfile
from typing import List, Optional, Tuple

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.requests import Request

from app.core.errors import MalformedRequestError, UploadIOError
from app.models.file_meta import FileDescriptor, FormEntry
from app.services.promoter import discard
from app.utils.logger import logger

BOUNDARY_REGEX = re.compile(r"^multipart/form-data;\s*boundary=(?P<boundary>.+)$", re.IGNORECASE)

INVALID_UPLOAD_MESSAGE = (
    'Invalid upload data, request must contains a body with form "multipart/form-data", '
    'and inputs with type="file".'
)


# ----------------------
# param   : content_type - 요청 content-type 헤더
# function: boundary 토큰 추출 (헤더가 없거나 형식이 다르면 예외)
# return  : boundary 문자열
# ----------------------
def parse_boundary(content_type: Optional[str]) -> str:
    if not content_type:
        raise MalformedRequestError(INVALID_UPLOAD_MESSAGE)
    match = BOUNDARY_REGEX.match(content_type.strip())
    if not match:
        raise MalformedRequestError(INVALID_UPLOAD_MESSAGE)
    return match.group("boundary").strip('"')


# ----------------------
# param   : upload - Starlette UploadFile
# param   : staging_dir - 스크래치 디렉토리 (None 이면 시스템 temp)
# function: 업로드 파트를 스크래치 파일로 복사
# return  : (스크래치 경로, 실제 바이트 수)
# ----------------------
def spool_to_scratch(upload: UploadFile, staging_dir: Optional[str] = None) -> Tuple[str, int]:
    upload.file.seek(0)
    with tempfile.NamedTemporaryFile(delete=False, dir=staging_dir, prefix="upload_") as out:
        try:
            shutil.copyfileobj(upload.file, out)
        except BaseException:
            out.close()
            discard([out.name])
            raise
        return out.name, out.tell()


# ----------------------
# param   : request - 요청 객체
# param   : staging_dir - 스크래치 디렉토리
# function: 폼 디코딩 → 파일 파트는 스크래치에 저장한 FileDescriptor, 나머지는 문자열 값
# return  : 디코딩 순서대로의 FormEntry 리스트
# ----------------------
async def read_form_entries(request: Request, staging_dir: Optional[str] = None) -> List[FormEntry]:
    entries: List[FormEntry] = []
    staged: List[str] = []

    async with request.form() as form:
        try:
            for field_name, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    entries.append(FormEntry(field_name, value))
                    continue
                # 파일 선택 없이 제출된 input[type=file]
                if not value.filename:
                    continue
                scratch_path, size = await run_in_threadpool(spool_to_scratch, value, staging_dir)
                staged.append(scratch_path)
                entries.append(FormEntry(field_name, FileDescriptor(
                    filename=value.filename,
                    size=size,
                    content_type=value.content_type,
                    tempfile=scratch_path,
                )))
        except OSError as e:
            await run_in_threadpool(discard, staged)
            logger.exception("[MULTIPART] 스크래치 저장 실패")
            raise UploadIOError(f"Failed to stage uploaded files: {e}", cause=e) from e

    logger.debug(f"[MULTIPART] 폼 엔트리 {len(entries)}개 디코딩 (파일 {len(staged)}개)")
    return entries
