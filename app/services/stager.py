# ----------------------
# file   : app/services/stager.py
# function: 디코딩된 폼 검증 → (실패 시 스크래치 전부 삭제) → 영구 저장 / 스크래치 보관 → 필드별 결과 집계
# ----------------------

import os
from typing import List, Sequence

from starlette.concurrency import run_in_threadpool

from app.core.errors import UploadIOError, UploadValidationError
from app.models.file_meta import FileDescriptor, FormEntry, UploadResult
from app.models.upload_options import UploadOptions
from app.services.path_builder import build_location, resolve_base_dir
from app.services.promoter import discard, ensure_dir, promote, prune_empty_dirs, unpromote
from app.services.validation import validate_entries
from app.utils.logger import logger


# ----------------------
# param   : filename - 클라이언트 파일명
# function: 경로 구분자 제거, 마지막 이름만 사용
# return  : leaf 파일명
# ----------------------
def leaf_name(filename: str) -> str:
    name = os.path.basename(filename.replace("\\", "/"))
    if name in ("", ".", ".."):
        return "file"
    return name


# ----------------------
# param   : result - 집계 중인 결과
# param   : field_name - 폼 필드명
# param   : descriptor - 추가할 파일
# function: 첫 파일은 단일 값, 두 번째부터 리스트로 (디코딩 순서 유지)
# ----------------------
def add_to_result(result: UploadResult, field_name: str, descriptor: FileDescriptor) -> None:
    current = result.get(field_name)
    if current is None:
        result[field_name] = descriptor
    elif isinstance(current, list):
        current.append(descriptor)
    else:
        result[field_name] = [current, descriptor]


def file_descriptors(entries: Sequence[FormEntry]) -> List[FileDescriptor]:
    return [value for _, value in entries if isinstance(value, FileDescriptor)]


# ----------------------
# class   : UploadStager
# function: 업로드 옵션 하나에 대한 검증/저장 엔진 (요청 간 공유 상태 없음)
# ----------------------
class UploadStager:
    def __init__(self, options: UploadOptions, temp_upload_dir: str = "temp_uploads"):
        self.options = options
        self.temp_upload_dir = os.path.abspath(temp_upload_dir)
        # 스크래치 보관 디렉토리는 생성 시점에 한 번만 만든다
        ensure_dir(self.temp_upload_dir)

    # ----------------------
    # param   : entries - 디코딩된 폼 엔트리 (파일은 이미 스크래치에 저장됨)
    # function: 검증 → 실패 시 전체 삭제 후 예외 / 성공 시 파일 배치 및 결과 집계
    # return  : UploadResult
    # ----------------------
    async def stage(self, entries: Sequence[FormEntry]) -> UploadResult:
        descriptors = file_descriptors(entries)

        violations = validate_entries(entries, self.options)
        if violations:
            removed = await run_in_threadpool(discard, [d.tempfile for d in descriptors])
            logger.info(f"[UPLOAD] 검증 실패 {len(violations)}건, 스크래치 파일 {removed}개 삭제")
            raise UploadValidationError(violations)

        result: UploadResult = {}
        try:
            for field_name, value in entries:
                if not isinstance(value, FileDescriptor):
                    continue
                await run_in_threadpool(self._place, value)
                add_to_result(result, field_name, value)
        except OSError as e:
            await run_in_threadpool(self._rollback, descriptors)
            logger.exception("[UPLOAD] 파일 이동 실패, 요청 전체 롤백")
            raise UploadIOError(f"Failed to store uploaded files: {e}", cause=e) from e

        logger.info(f"[UPLOAD] 파일 {len(descriptors)}개 처리 완료 (필드 {len(result)}개)")
        return result

    # ----------------------
    # param   : descriptor - 검증 통과한 파일
    # function: (옵션) 메모리 로드 → 영구 저장 또는 스크래치 보관 디렉토리로 이동
    # ----------------------
    def _place(self, descriptor: FileDescriptor) -> None:
        if self.options.read_file:
            with open(descriptor.tempfile, "rb") as f:
                descriptor.data = f.read()

        if self.options.save_file:
            location = build_location(
                self.options.path,
                leaf_name(descriptor.filename),
                use_current_dir=self.options.use_current_dir,
            )
            ensure_dir(location.directory)
            try:
                promote(descriptor.tempfile, location.uri)
            except OSError:
                prune_empty_dirs(location.directory, location.base_dir)
                raise
            descriptor.tempfile = None
            descriptor.id = location.id
            descriptor.url = location.url
            descriptor.uri = location.uri
            logger.debug(f"[UPLOAD] 영구 저장 완료: {descriptor.filename} → {location.uri}")
        else:
            held_path = os.path.join(self.temp_upload_dir, os.path.basename(descriptor.tempfile))
            promote(descriptor.tempfile, held_path)
            descriptor.tempfile = held_path
            logger.debug(f"[UPLOAD] 스크래치 보관: {descriptor.filename} → {held_path}")

    # ----------------------
    # function: 이동 실패 시 이미 저장된 파일 + 남은 스크래치 파일 모두 삭제
    # ----------------------
    def _rollback(self, descriptors: Sequence[FileDescriptor]) -> None:
        base_dir = resolve_base_dir(self.options.path, self.options.use_current_dir)
        for descriptor in descriptors:
            if descriptor.uri:
                unpromote(descriptor.uri, base_dir)
            elif descriptor.tempfile:
                discard([descriptor.tempfile])
