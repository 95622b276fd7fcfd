# ----------------------
# file   : app/services/path_builder.py
# function: 영구 저장 경로 생성 (년/월/일/시/분/초/uuid → 충돌 방지)
# ----------------------

import os
import posixpath
import uuid
from datetime import datetime
from typing import NamedTuple, Optional
from urllib.parse import quote

# encodeURI 와 동일하게 예약 문자는 유지
URL_SAFE_CHARS = ";,/?:@&=+$-_.!~*'()#"


class UploadLocation(NamedTuple):
    id: str
    url: str
    uri: str
    directory: str
    base_dir: str


# ----------------------
# param   : now - 기준 시각 (기본: 현재 로컬 시각)
# param   : token - 랜덤 토큰 (기본: uuid4)
# function: "2024/3/15/9/41/7/<uuid>" 형식 업로드 ID 생성 (0 패딩 없음)
# return  : 업로드 ID 문자열
# ----------------------
def build_upload_id(now: Optional[datetime] = None, token: Optional[str] = None) -> str:
    now = now or datetime.now()
    token = token or str(uuid.uuid4())
    return "/".join([
        str(now.year),
        str(now.month),
        str(now.day),
        str(now.hour),
        str(now.minute),
        str(now.second),
        token,
    ])


# ----------------------
# param   : base_path - 업로드 기본 경로 (옵션 path)
# param   : filename - 원본 파일명 (leaf 이름으로 유지)
# param   : use_current_dir - True 면 작업 디렉토리 기준, False 면 base_path 그대로
# param   : upload_id - 미리 만든 ID (테스트용)
# function: id / url / uri / 저장 디렉토리 계산
# return  : UploadLocation
# ----------------------
def build_location(
    base_path: str,
    filename: str,
    use_current_dir: bool = True,
    upload_id: Optional[str] = None,
) -> UploadLocation:
    upload_id = upload_id or build_upload_id()

    base_dir = resolve_base_dir(base_path, use_current_dir)
    directory = os.path.join(base_dir, *upload_id.split("/"))

    web_path = posixpath.join(base_path.replace("\\", "/"), upload_id, filename)
    url = quote(web_path, safe=URL_SAFE_CHARS)

    return UploadLocation(
        id=upload_id,
        url=url,
        uri=os.path.join(directory, filename),
        directory=directory,
        base_dir=base_dir,
    )


# ----------------------
# param   : base_path - 업로드 기본 경로
# param   : use_current_dir - True 면 작업 디렉토리 기준, False 면 그대로 사용
# return  : 저장 기본 디렉토리
# ----------------------
def resolve_base_dir(base_path: str, use_current_dir: bool = True) -> str:
    if use_current_dir:
        return os.path.join(os.getcwd(), base_path)
    return base_path
