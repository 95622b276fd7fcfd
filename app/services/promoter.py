# ----------------------
# file   : app/services/promoter.py
# function: 스크래치 파일 → 영구 저장소 이동 (원자적 rename, 볼륨이 다르면 copy 후 교체) 및 정리
# ----------------------

import errno
import os
import shutil
import uuid
from typing import Iterable

from app.utils.logger import logger

COPY_CHUNK_SIZE = 1024 * 1024


# ----------------------
# param   : directory - 생성할 디렉토리
# function: 디렉토리 보장 (이미 있으면 무시, 동시 요청 경합에도 안전)
# ----------------------
def ensure_dir(directory: str) -> None:
    os.makedirs(directory, exist_ok=True)


# ----------------------
# param   : src - 스크래치 파일 경로
# param   : dest - 최종 파일 경로
# function: 같은 볼륨이면 os.replace, 다른 볼륨이면 임시 파일에 복사 후 교체
#           실패 시 src 는 그대로 두고 dest 에는 아무것도 남기지 않음
# ----------------------
def promote(src: str, dest: str) -> None:
    try:
        os.replace(src, dest)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    logger.debug(f"[PROMOTE] 다른 볼륨 이동, 복사 후 교체: {src} → {dest}")
    dest_dir = os.path.dirname(dest) or "."
    part_path = os.path.join(dest_dir, f".{uuid.uuid4().hex}.part")
    try:
        with open(src, "rb") as fsrc, open(part_path, "wb") as fdst:
            shutil.copyfileobj(fsrc, fdst, COPY_CHUNK_SIZE)
            fdst.flush()
            os.fsync(fdst.fileno())
        os.replace(part_path, dest)
    except BaseException:
        remove_quietly(part_path)
        raise

    os.remove(src)


def remove_quietly(path: str) -> bool:
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False


# ----------------------
# param   : paths - 삭제할 스크래치 파일 경로 목록
# function: 요청에 속한 스크래치 파일 전부 삭제 (이미 없는 파일은 무시)
# return  : 실제 삭제된 개수
# ----------------------
def discard(paths: Iterable[str]) -> int:
    removed = 0
    for path in paths:
        if not path:
            continue
        try:
            if remove_quietly(path):
                removed += 1
        except OSError as e:
            logger.warning(f"[CLEANUP] 스크래치 파일 삭제 실패: {path} ({e})")
    return removed


# ----------------------
# param   : directory - 정리를 시작할 디렉토리
# param   : root - 이 디렉토리는 남기고 그 아래까지만 정리
# function: 비어있는 디렉토리를 root 직전까지 위로 올라가며 삭제 (비어있지 않으면 중단)
# return  : 삭제된 디렉토리 수
# ----------------------
def prune_empty_dirs(directory: str, root: str) -> int:
    root = os.path.abspath(root)
    current = os.path.abspath(directory)
    removed = 0
    while current != root and current.startswith(root + os.sep):
        try:
            os.rmdir(current)
        except OSError:
            break
        removed += 1
        current = os.path.dirname(current)
    return removed


# ----------------------
# param   : uri - 영구 저장된 파일 경로
# param   : root - 업로드 기본 디렉토리
# function: 롤백용 삭제 (파일 삭제 후 비어있는 uuid / 날짜 디렉토리도 제거)
# ----------------------
def unpromote(uri: str, root: str) -> None:
    remove_quietly(uri)
    prune_empty_dirs(os.path.dirname(uri), root)
