# ----------------------
# file   : app/services/validation.py
# function: 확장자 / 파일 크기 / 전체 크기 검증 (위반 메시지 누적, 첫 위반에서 멈추지 않음)
# ----------------------

from typing import Iterable, List, Sequence, Tuple

from app.models.file_meta import FileDescriptor, FormEntry
from app.models.upload_options import UploadOptions


# ----------------------
# param   : filename - 클라이언트가 보낸 파일명
# function: 마지막 "." 이후 문자열 (대소문자 그대로)
# return  : 확장자 문자열 ("."이 없으면 파일명 전체)
# ----------------------
def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1]


def extension_violation(filename: str, extensions: Sequence[str]) -> List[str]:
    if not extensions:
        return []
    ext = file_extension(filename)
    if ext in extensions:
        return []
    return [
        f"The file extension is not allowed ({ext} in {filename}), "
        f"allowed extensions: {','.join(extensions)}."
    ]


def file_size_violation(filename: str, size: int, max_file_size_bytes: int) -> List[str]:
    if size <= max_file_size_bytes:
        return []
    return [
        f"Maximum file upload size exceeded, file: {filename}, "
        f"size: {size} bytes, maximum: {max_file_size_bytes} bytes."
    ]


def total_size_violation(total: int, max_size_bytes: int) -> List[str]:
    if total <= max_size_bytes:
        return []
    return [
        f"Maximum total upload size exceeded, size: {total} bytes, "
        f"maximum: {max_size_bytes} bytes."
    ]


# ----------------------
# param   : declared - [(필드명, 선언 파일)] 목록
# param   : options - 업로드 옵션
# function: 사전 업로드 매니페스트 검증 (크기 → 확장자 → 전체 크기 순)
# return  : 위반 메시지 리스트
# ----------------------
def validate_declared(declared: Iterable[Tuple[str, object]], options: UploadOptions) -> List[str]:
    violations: List[str] = []
    total = 0
    for _field, item in declared:
        total += item.size
        violations += file_size_violation(item.name, item.size, options.max_file_size_bytes)
        violations += extension_violation(item.name, options.extensions)
    violations += total_size_violation(total, options.max_size_bytes)
    return violations


# ----------------------
# param   : entries - 디코딩된 폼 엔트리
# param   : options - 업로드 옵션
# function: 수신된 실제 파일 검증 (엔트리는 변경하지 않음)
# return  : 위반 메시지 리스트
# ----------------------
def validate_entries(entries: Sequence[FormEntry], options: UploadOptions) -> List[str]:
    violations: List[str] = []
    total = 0
    scalar_fields = set()
    file_fields = set()

    for field_name, value in entries:
        if not isinstance(value, FileDescriptor):
            scalar_fields.add(field_name)
            continue
        file_fields.add(field_name)
        total += value.size
        violations += extension_violation(value.filename, options.extensions)
        violations += file_size_violation(value.filename, value.size, options.max_file_size_bytes)

    for field_name in sorted(scalar_fields & file_fields):
        violations.append(f"The field {field_name} mixes file and non-file values.")

    violations += total_size_violation(total, options.max_size_bytes)
    return violations
