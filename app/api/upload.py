# ----------------------
# file   : app/api/upload.py
# function: 파일 업로드 API - 사전 검증(JSON 매니페스트) / multipart 업로드 (검증 → 저장 → 메타 반환)
# ----------------------

from fastapi import APIRouter, Depends, Request

from app.models.file_meta import PreUploadManifest, UploadResult, public_result
from app.utils.logger import logger

router = APIRouter()


# ----------------------
# function: 앱에 등록된 업로드 단계 실행 (create_app 에서 설정)
# return  : UploadResult
# ----------------------
async def uploaded_files(request: Request) -> UploadResult:
    return await request.app.state.upload_handler(request)


async def validated_manifest(request: Request) -> PreUploadManifest:
    return await request.app.state.pre_upload_validator(request)


# ----------------------
# param   : files - 검증/저장이 끝난 업로드 결과
# function: 필드별 파일 메타 반환 (메모리 바이트 제외)
# return  : { 필드명: 파일 메타 | [파일 메타, ...] }
# ----------------------
@router.post("/upload")
async def upload_files(files: UploadResult = Depends(uploaded_files)):
    logger.info(f"[UPLOAD] 업로드 완료: 필드 {list(files.keys())}")
    return public_result(files)


# ----------------------
# param   : manifest - 이름/크기 선언 목록 (검증 통과)
# function: 전송 전 수용 가능 여부 응답
# return  : { "valid": true, "files": int }
# ----------------------
@router.post("/pre-upload")
async def pre_upload(manifest: PreUploadManifest = Depends(validated_manifest)):
    return {"valid": True, "files": len(manifest.declared_files())}
